"""
Common API models used across different endpoints.

These models represent the shared envelope: every endpoint answers with
`success` plus either data or an error description.
"""

from pydantic import BaseModel, Field
from typing import Dict, Optional

class APIResponse(BaseModel):
    """Base response wrapper for all API endpoints."""
    success: bool = Field(..., description="Whether the request was successful")

class ErrorResponse(APIResponse):
    """Standard failure envelope."""
    success: bool = Field(False, description="Always false for failures")
    error: str = Field(..., description="Stable, user-facing error message")
    details: Optional[str] = Field(None, description="Developer-facing elaboration, safe to display")
    code: Optional[str] = Field(None, description="Raw error code from the vision service, when available")

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Invalid or inaccessible image URL",
                "details": "The image URL could not be accessed. Please ensure the URL is publicly accessible and points to a valid image file.",
                "code": "InvalidImageUrl"
            }
        }

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="UTC timestamp of the check")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of external dependencies")
