"""
Maps forwarder results onto the stable success/failure envelope.

Upstream errors are classified by the service's own error code through a
fixed lookup table; transport failures by what went wrong on the wire.
Raw upstream text and exception messages are logged, never returned.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .types import (
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisSuccess,
    ErrorKind,
    NormalizedRequest,
    RejectionReason,
    SourceKind,
)
from ...models.providers.base import ForwardErr, ForwardOk, ForwardResult, TransportError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "apim-request-id"
RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class UpstreamMessage:
    user_message: str
    url_detail: str
    upload_detail: str
    passthrough: bool = False  # prefer the service's own message when present

    def detail_for(self, source_kind: SourceKind) -> str:
        return self.upload_detail if source_kind is SourceKind.UPLOAD else self.url_detail


UPSTREAM_ERRORS: Dict[str, UpstreamMessage] = {
    "InvalidImageUrl": UpstreamMessage(
        "Invalid or inaccessible image URL",
        "The image URL could not be accessed. Please ensure the URL is publicly accessible and points to a valid image file.",
        "The image URL could not be accessed.",
    ),
    "InvalidImageFormat": UpstreamMessage(
        "Unsupported image format",
        "Supported formats: JPEG, PNG, GIF, BMP. Please provide an image in one of these formats.",
        "The uploaded file is not a valid image or is corrupted. Supported formats: JPEG, PNG, GIF, BMP.",
    ),
    "InvalidImageSize": UpstreamMessage(
        "Invalid image dimensions",
        "Image must be at least 50x50 pixels and no larger than 16,000x16,000 pixels.",
        "Image must be at least 50x50 pixels and no larger than 16,000x16,000 pixels.",
    ),
    "InvalidImage": UpstreamMessage(
        "Invalid or corrupted image",
        "The image file appears to be corrupted or is not a valid image.",
        "The uploaded file appears to be corrupted or is not a valid image.",
    ),
    "BadArgument": UpstreamMessage(
        "Invalid request parameters",
        "One or more parameters in your request are invalid.",
        "One or more parameters in your request are invalid.",
        passthrough=True,
    ),
}

RATE_LIMITED = UpstreamMessage(
    "Rate limit exceeded",
    "Too many requests. Free tier allows 20 requests per minute. Please wait before trying again.",
    "Too many requests. Please wait before trying again.",
)

GENERIC_UPSTREAM = UpstreamMessage(
    "Azure API error",
    "An error occurred while processing your request.",
    "An error occurred while processing your image.",
    passthrough=True,
)

_TIMEOUT_DETAIL = {
    SourceKind.URL: "The image analysis request took too long. Please try again with a smaller image.",
    SourceKind.UPLOAD: "Image processing took too long. Please try with a smaller image.",
}

_INTERNAL = {
    SourceKind.URL: ("Failed to analyze image", "An unexpected error occurred. Please try again later."),
    SourceKind.UPLOAD: ("Failed to analyze uploaded image", "An unexpected error occurred during image analysis."),
}


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _upstream_error(payload: Any) -> Tuple[Optional[str], Optional[str]]:
    """Pull (code, message) out of an `{error: {code, message}}` body, tolerating anything else."""
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None, None
    code = error.get("code")
    message = error.get("message")
    return (
        code if isinstance(code, str) else None,
        message if isinstance(message, str) and message else None,
    )


def translate_success(result: ForwardOk, request: NormalizedRequest, now: Optional[datetime] = None) -> AnalysisSuccess:
    headers = {k.lower(): v for k, v in result.headers.items()}
    success = AnalysisSuccess(
        payload=result.payload,
        request_id=headers.get(REQUEST_ID_HEADER),
        timestamp=utc_timestamp(now),
        features_used=list(request.features),
    )
    if request.source_kind is SourceKind.UPLOAD:
        success.filename = request.filename
        success.size_bytes = request.size_bytes
        success.mime_type = request.mime_type
    return success


def translate_upstream_error(result: ForwardErr, source_kind: SourceKind) -> AnalysisFailure:
    code, service_message = _upstream_error(result.payload)

    if result.status_code == RATE_LIMIT_STATUS:
        entry = RATE_LIMITED
    else:
        entry = UPSTREAM_ERRORS.get(code or "", GENERIC_UPSTREAM)

    detail = entry.detail_for(source_kind)
    if entry.passthrough and service_message:
        detail = service_message

    return AnalysisFailure(
        kind=ErrorKind.UPSTREAM_ERROR,
        user_message=entry.user_message,
        detail=detail,
        http_status=result.status_code,
        external_code=code,
    )


def translate_transport_error(result: ForwardErr, source_kind: SourceKind) -> AnalysisFailure:
    reason = result.transport_error

    if reason is TransportError.TIMEOUT:
        return AnalysisFailure(
            kind=ErrorKind.TRANSPORT_FAILURE,
            user_message="Request timeout",
            detail=_TIMEOUT_DETAIL[source_kind],
            http_status=504,
        )
    if reason in (TransportError.DNS, TransportError.CONNECTION_REFUSED):
        return AnalysisFailure(
            kind=ErrorKind.TRANSPORT_FAILURE,
            user_message="Service unavailable",
            detail="Unable to connect to Azure Computer Vision service. Please try again later.",
            http_status=503,
        )
    if reason is TransportError.NOT_CONFIGURED:
        return AnalysisFailure(
            kind=ErrorKind.TRANSPORT_FAILURE,
            user_message="Service unavailable",
            detail="The image analysis service is not configured. Please contact the administrator.",
            http_status=503,
        )
    if reason is TransportError.PAYLOAD_TOO_LARGE:
        return AnalysisFailure(
            kind=ErrorKind.TRANSPORT_FAILURE,
            user_message="File too large",
            detail="Image file must be less than 4MB. Please compress or resize your image.",
            http_status=413,
        )
    return internal_failure(source_kind)


def internal_failure(source_kind: SourceKind) -> AnalysisFailure:
    user_message, detail = _INTERNAL[source_kind]
    return AnalysisFailure(
        kind=ErrorKind.INTERNAL_FAILURE,
        user_message=user_message,
        detail=detail,
        http_status=500,
    )


def rejection_to_failure(reason: RejectionReason) -> AnalysisFailure:
    return AnalysisFailure(
        kind=ErrorKind.VALIDATION_REJECTION,
        user_message=reason.error,
        detail=reason.details,
        http_status=reason.status_code,
    )


def translate(result: ForwardResult, request: NormalizedRequest, now: Optional[datetime] = None) -> AnalysisOutcome:
    if isinstance(result, ForwardOk):
        return translate_success(result, request, now)

    if result.responded:
        logger.error("Analysis error from Azure (%s): %s", result.status_code, result.payload)
        return translate_upstream_error(result, request.source_kind)

    logger.error("Analysis transport failure (%s): %s", result.transport_error, result.message)
    return translate_transport_error(result, request.source_kind)
