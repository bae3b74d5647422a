"""
Service wiring for request handlers.

Settings and the vision provider are created once per application (see
`api.main`) and stored on `app.state`; handlers receive them through these
dependencies, which tests replace via `app.dependency_overrides`.
"""

from fastapi import Depends, Request

from visionproxy.config.settings import Settings
from visionproxy.models.providers.base import VisionProvider
from visionproxy.pipeline.analysis.analysis import AnalysisPipeline


def get_settings(request: Request) -> Settings:
    """FastAPI dependency to get the application settings."""
    return request.app.state.settings

def get_vision_provider(request: Request) -> VisionProvider:
    """FastAPI dependency to get the shared vision provider from app state."""
    return request.app.state.vision_provider

def get_analysis_pipeline(provider: VisionProvider = Depends(get_vision_provider)) -> AnalysisPipeline:
    """FastAPI dependency building a pipeline around the shared provider."""
    return AnalysisPipeline(provider)
