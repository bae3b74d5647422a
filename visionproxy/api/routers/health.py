"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.services import get_vision_provider
from visionproxy import __version__
from visionproxy.models.providers.base import VisionProvider
from visionproxy.pipeline.analysis.translator import utc_timestamp

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

@router.get("", response_model=HealthStatus)
async def health_check(provider: VisionProvider = Depends(get_vision_provider)):
    """
    Basic health check endpoint.

    Reports whether the vision service is configured. The service itself is
    not called.
    """
    dependencies = {
        "azure_vision": "configured" if provider.health_check() else "missing credentials",
    }

    return HealthStatus(
        status="healthy",
        version=__version__,
        timestamp=utc_timestamp(),
        uptime=time.time() - _server_start_time,
        dependencies=dependencies,
    )
