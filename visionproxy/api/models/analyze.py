"""
API models for the image analysis endpoints.

The `data` field of a successful response is the vision service's own JSON,
passed through untouched, so it is left untyped here.
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional

from .common import APIResponse

# API Request Models
class UrlAnalysisRequest(BaseModel):
    # Left as Any so that type problems get the pipeline's own rejection messages
    url: Any = Field(None, description="Publicly reachable http(s) image URL")
    features: Any = Field(None, description="Visual features to request; defaults to Description, Tags, Objects, Color")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com/cat.jpg",
                "features": ["Description", "Tags"]
            }
        }

# API Response Models
class AnalysisMetadata(BaseModel):
    request_id: Optional[str] = Field(None, alias="requestId")
    timestamp: str
    features_used: List[str] = Field(..., alias="featuresUsed")
    filename: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = Field(None, alias="mimeType")

    class Config:
        populate_by_name = True

class AnalysisResponse(APIResponse):
    """Response after a successful analysis."""
    data: Any = Field(None, description="Vision service payload, unmodified")
    metadata: Optional[AnalysisMetadata] = None

class FeatureInfo(BaseModel):
    name: str
    description: str
    default: bool

class FeatureListResponse(APIResponse):
    """Supported visual features."""
    features: List[FeatureInfo]
    default: List[str]
