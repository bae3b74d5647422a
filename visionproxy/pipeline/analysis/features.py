import json
from typing import Any, Dict, List, Optional, Union

from .types import (
    DEFAULT_FEATURES,
    VALID_FEATURES,
    DelimitedString,
    FeatureInput,
    FeatureTag,
    RejectionReason,
    StructuredList,
)

FEATURE_DESCRIPTIONS: Dict[FeatureTag, str] = {
    FeatureTag.DESCRIPTION: "Human-readable captions describing the image",
    FeatureTag.TAGS: "Content tags for objects, scenery and actions in the image",
    FeatureTag.OBJECTS: "Detected objects with bounding boxes",
    FeatureTag.COLOR: "Dominant colors, accent color and black-and-white detection",
    FeatureTag.IMAGE_TYPE: "Whether the image is clip art or a line drawing",
    FeatureTag.FACES: "Detected faces with age, gender and position",
    FeatureTag.ADULT: "Adult, racy and gory content scores",
    FeatureTag.BRANDS: "Commercial brands and logos",
    FeatureTag.CATEGORIES: "Image categories from the service taxonomy",
}


def feature_catalogue() -> List[Dict[str, Any]]:
    return [
        {
            "name": tag.value,
            "description": FEATURE_DESCRIPTIONS[tag],
            "default": tag.value in DEFAULT_FEATURES,
        }
        for tag in FeatureTag
    ]


def _invalid_format(field: str) -> RejectionReason:
    return RejectionReason(
        field=field,
        constraint="type",
        error="Invalid features format",
        details="Features must be an array of strings",
        valid_values=list(VALID_FEATURES),
    )


def check_feature_list(features: Any, field: str = "features") -> Union[List[str], RejectionReason]:
    """
    Validate a caller-supplied feature list against the closed FeatureTag set.

    Any unknown tag rejects the whole request; the rejection names every
    offending tag together with the valid set so the caller can correct it.
    """
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        return _invalid_format(field)

    invalid = [f for f in features if f not in VALID_FEATURES]
    if invalid:
        return RejectionReason(
            field=field,
            constraint="membership",
            error="Invalid feature names",
            details=f"Invalid features: {', '.join(invalid)}. Valid features are: {', '.join(VALID_FEATURES)}",
            valid_values=list(VALID_FEATURES),
        )
    return list(features)


def read_feature_field(raw: str) -> FeatureInput:
    """Try JSON list syntax first, fall back to a comma-separated list."""
    try:
        return StructuredList(value=json.loads(raw))
    except json.JSONDecodeError:
        return DelimitedString(items=[part.strip() for part in raw.split(",")])


def parse_feature_field(raw: Optional[str]) -> Union[List[str], RejectionReason]:
    """
    Resolve the upload-mode `features` form field into a validated list.

    An absent or blank field resolves to the default feature set. Never raises.
    """
    if not raw:
        return list(DEFAULT_FEATURES)

    try:
        parsed = read_feature_field(raw)
    except RecursionError:
        # Nesting deep enough to exhaust the JSON decoder is never a feature list
        return _invalid_format("features")
    if isinstance(parsed, StructuredList):
        return check_feature_list(parsed.value)
    return check_feature_list(parsed.items)
