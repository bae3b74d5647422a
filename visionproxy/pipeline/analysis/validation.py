"""
Request validation for the analysis pipeline.

Both validators are pure: they either produce a NormalizedRequest ready for
forwarding or a RejectionReason explaining which field failed which
constraint. Nothing here touches the network.
"""

import logging
from typing import Union

from .features import check_feature_list, parse_feature_field
from .types import (
    DEFAULT_FEATURES,
    AnalysisRequest,
    NormalizedRequest,
    RejectionReason,
    SourceKind,
)
from ...utils.sanitizer import ALLOWED_SCHEMES, has_allowed_scheme, has_host, is_absolute_url, sanitize_url

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
MAX_UPLOAD_BYTES = 4 * 1024 * 1024
MIN_UPLOAD_BYTES = 1024
UPLOAD_FIELD = "image"
SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/gif", "image/bmp", "image/webp"]

ValidationResult = Union[NormalizedRequest, RejectionReason]


def _invalid_url(constraint: str) -> RejectionReason:
    return RejectionReason(
        field="url",
        constraint=constraint,
        error="Invalid URL format",
        details="URL must start with http:// or https:// and point to a valid image",
        valid_values=[f"{scheme}://" for scheme in ALLOWED_SCHEMES],
    )


def validate_url_request(raw: AnalysisRequest) -> ValidationResult:
    url = raw.url

    if not url:
        return RejectionReason(
            field="url",
            constraint="required",
            error="Image URL is required",
            details="Please provide a valid image URL in the request body",
        )
    if not isinstance(url, str) or not is_absolute_url(url):
        return _invalid_url("format")
    if not has_allowed_scheme(url):
        return _invalid_url("scheme")
    if not has_host(url):
        return _invalid_url("format")
    if len(url) > MAX_URL_LENGTH:
        return RejectionReason(
            field="url",
            constraint="max_length",
            error="URL too long",
            details=f"Image URL must be less than {MAX_URL_LENGTH} characters",
        )

    # Only an absent list falls back to defaults; [] is forwarded as-is.
    if raw.features is None:
        features = list(DEFAULT_FEATURES)
    else:
        features = check_feature_list(raw.features)
        if isinstance(features, RejectionReason):
            return features

    sanitized_url = sanitize_url(url)
    logger.info("Analyzing image from URL: %s", sanitized_url)
    logger.info("Features: %s", ", ".join(features))

    return NormalizedRequest(source_kind=SourceKind.URL, url=sanitized_url, features=features)


def validate_upload_request(raw: AnalysisRequest) -> ValidationResult:
    if raw.image_bytes is None:
        return RejectionReason(
            field=UPLOAD_FIELD,
            constraint="required",
            error="No image file provided",
            details=f'Please upload an image file using the "{UPLOAD_FIELD}" field name.',
        )

    size = raw.size_bytes if raw.size_bytes is not None else len(raw.image_bytes)
    if size > MAX_UPLOAD_BYTES:
        return RejectionReason(
            field=UPLOAD_FIELD,
            constraint="max_size",
            error="File too large",
            details="Image file must be less than 4MB. Please compress or resize your image.",
            status_code=413,
        )
    if size < MIN_UPLOAD_BYTES:
        return RejectionReason(
            field=UPLOAD_FIELD,
            constraint="min_size",
            error="File too small",
            details="Image file must be at least 1KB. The uploaded file appears to be invalid or corrupted.",
        )
    if raw.mime_type not in SUPPORTED_MIME_TYPES:
        return RejectionReason(
            field=UPLOAD_FIELD,
            constraint="mime_type",
            error="Unsupported file type",
            details=f'File type "{raw.mime_type}" is not supported. Please upload a JPEG, PNG, GIF, BMP, or WEBP image.',
            status_code=415,
            valid_values=list(SUPPORTED_MIME_TYPES),
        )

    features = parse_feature_field(raw.features)
    if isinstance(features, RejectionReason):
        return features

    filename = sanitize_url(raw.filename) if raw.filename else None
    logger.info("Analyzing uploaded image: %s", filename)
    logger.info("Size: %.2f KB, type: %s", size / 1024, raw.mime_type)
    logger.info("Features: %s", ", ".join(features))

    return NormalizedRequest(
        source_kind=SourceKind.UPLOAD,
        image_bytes=raw.image_bytes,
        filename=filename,
        mime_type=raw.mime_type,
        size_bytes=size,
        features=features,
    )
