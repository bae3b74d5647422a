"""
Image analysis API endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..models.analyze import (
    AnalysisMetadata, AnalysisResponse, FeatureInfo, FeatureListResponse, UrlAnalysisRequest
)
from ..models.common import ErrorResponse
from ..dependencies.services import get_analysis_pipeline
from visionproxy.pipeline.analysis.analysis import AnalysisPipeline
from visionproxy.pipeline.analysis.features import feature_catalogue
from visionproxy.pipeline.analysis.types import DEFAULT_FEATURES, AnalysisOutcome, AnalysisRequest, AnalysisSuccess
from visionproxy.pipeline.analysis.validation import UPLOAD_FIELD

router = APIRouter()

ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 413, 415, 429, 500, 503, 504)
}


def outcome_to_response(outcome: AnalysisOutcome) -> JSONResponse:
    """Render a pipeline outcome as the JSON envelope with its HTTP status."""
    if isinstance(outcome, AnalysisSuccess):
        metadata = AnalysisMetadata(
            request_id=outcome.request_id,
            timestamp=outcome.timestamp,
            features_used=outcome.features_used,
            filename=outcome.filename,
            size=outcome.size_bytes,
            mime_type=outcome.mime_type,
        )
        # data is built by hand so nulls inside the service payload survive
        body = {
            "success": True,
            "data": outcome.payload,
            "metadata": metadata.model_dump(by_alias=True, exclude_none=True),
        }
        return JSONResponse(status_code=outcome.http_status, content=body)

    error = ErrorResponse(error=outcome.user_message, details=outcome.detail, code=outcome.external_code)
    return JSONResponse(status_code=outcome.http_status, content=error.model_dump(exclude_none=True))


@router.post("/url", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze_from_url(
    request: Optional[UrlAnalysisRequest] = None,
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """
    Analyze an image reachable by URL.

    The URL is validated and sanitized before anything is sent to the vision
    service; `features` defaults to Description, Tags, Objects and Color.
    """
    body = request or UrlAnalysisRequest()
    outcome = await pipeline.analyze_url(AnalysisRequest.from_url_body(body.url, body.features))
    return outcome_to_response(outcome)


@router.post("/upload", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze_from_upload(
    image: Optional[UploadFile] = File(None, description=f'Image file, sent as the "{UPLOAD_FIELD}" field'),
    features: Optional[str] = Form(None, description="JSON array or comma-separated list of features"),
    pipeline: AnalysisPipeline = Depends(get_analysis_pipeline),
):
    """
    Analyze an uploaded image (multipart/form-data).
    """
    # Multipart pre-filter; the pipeline re-checks the exact MIME type
    if image is not None and not (image.content_type or "").startswith("image/"):
        error = ErrorResponse(error="Invalid file type", details="Only image files are allowed.")
        return JSONResponse(status_code=400, content=error.model_dump(exclude_none=True))

    image_bytes = await image.read() if image is not None else None
    analysis_request = AnalysisRequest.from_upload(
        image_bytes=image_bytes,
        filename=image.filename if image is not None else None,
        mime_type=image.content_type if image is not None else None,
        features=features,
    )
    outcome = await pipeline.analyze_upload(analysis_request)
    return outcome_to_response(outcome)


@router.get("/features", response_model=FeatureListResponse)
async def list_features():
    """List the visual features that can be requested."""
    return FeatureListResponse(
        success=True,
        features=[FeatureInfo(**entry) for entry in feature_catalogue()],
        default=list(DEFAULT_FEATURES),
    )
