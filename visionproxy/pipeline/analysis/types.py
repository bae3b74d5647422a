from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union


class FeatureTag(Enum):
    DESCRIPTION = "Description"
    TAGS = "Tags"
    OBJECTS = "Objects"
    COLOR = "Color"
    IMAGE_TYPE = "ImageType"
    FACES = "Faces"
    ADULT = "Adult"
    BRANDS = "Brands"
    CATEGORIES = "Categories"


VALID_FEATURES: List[str] = [tag.value for tag in FeatureTag]
DEFAULT_FEATURES: List[str] = [
    FeatureTag.DESCRIPTION.value,
    FeatureTag.TAGS.value,
    FeatureTag.OBJECTS.value,
    FeatureTag.COLOR.value,
]


class SourceKind(Enum):
    URL = "url"
    UPLOAD = "upload"


class ErrorKind(Enum):
    VALIDATION_REJECTION = "validation_rejection"
    UPSTREAM_ERROR = "upstream_error"
    TRANSPORT_FAILURE = "transport_failure"
    INTERNAL_FAILURE = "internal_failure"


# Input types
@dataclass
class AnalysisRequest:
    """Raw inbound request, exactly as the caller sent it."""
    source_kind: SourceKind
    url: Any = None
    image_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    features: Any = None  # list for url mode, single form string for upload mode

    @classmethod
    def from_url_body(cls, url: Any, features: Any = None) -> "AnalysisRequest":
        return cls(source_kind=SourceKind.URL, url=url, features=features)

    @classmethod
    def from_upload(
        cls,
        image_bytes: Optional[bytes],
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        features: Optional[str] = None,
    ) -> "AnalysisRequest":
        return cls(
            source_kind=SourceKind.UPLOAD,
            image_bytes=image_bytes,
            filename=filename,
            mime_type=mime_type,
            size_bytes=len(image_bytes) if image_bytes is not None else None,
            features=features,
        )


@dataclass(frozen=True)
class NormalizedRequest:
    source_kind: SourceKind
    features: List[str]
    url: Optional[str] = None
    image_bytes: Optional[bytes] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None

    @property
    def visual_features(self) -> str:
        """Feature list in the comma-joined form the vision service expects."""
        return ",".join(self.features)


@dataclass(frozen=True)
class RejectionReason:
    field: str
    constraint: str
    error: str
    details: str
    status_code: int = 400
    valid_values: Optional[List[str]] = None


# Feature field parse strategies
@dataclass(frozen=True)
class StructuredList:
    value: Any


@dataclass(frozen=True)
class DelimitedString:
    items: List[str]


FeatureInput = Union[StructuredList, DelimitedString]


# Final outcomes
@dataclass
class AnalysisSuccess:
    payload: Any  # opaque JSON owned by the vision service
    request_id: Optional[str]
    timestamp: str
    features_used: List[str]
    filename: Optional[str] = None
    size_bytes: Optional[int] = None
    mime_type: Optional[str] = None
    http_status: int = 200


@dataclass
class AnalysisFailure:
    kind: ErrorKind
    user_message: str
    detail: str
    http_status: int
    external_code: Optional[str] = None


AnalysisOutcome = Union[AnalysisSuccess, AnalysisFailure]
