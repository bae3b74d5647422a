import pytest

from visionproxy.pipeline.analysis.types import (
    DEFAULT_FEATURES,
    VALID_FEATURES,
    AnalysisRequest,
    NormalizedRequest,
    RejectionReason,
    SourceKind,
)
from visionproxy.pipeline.analysis.validation import (
    MAX_UPLOAD_BYTES,
    MIN_UPLOAD_BYTES,
    SUPPORTED_MIME_TYPES,
    validate_upload_request,
    validate_url_request,
)


def url_request(url="https://example.com/cat.jpg", **kw):
    return AnalysisRequest.from_url_body(url, **kw)


def upload_request(size=2048, mime_type="image/jpeg", features=None, filename="cat.jpg"):
    return AnalysisRequest.from_upload(
        image_bytes=b"\xff" * size,
        filename=filename,
        mime_type=mime_type,
        features=features,
    )


class TestValidateUrlRequest:

    def test_valid_url_uses_default_features(self):
        result = validate_url_request(url_request())

        assert isinstance(result, NormalizedRequest)
        assert result.source_kind is SourceKind.URL
        assert result.url == "https://example.com/cat.jpg"
        assert result.features == DEFAULT_FEATURES
        assert result.visual_features == "Description,Tags,Objects,Color"

    @pytest.mark.parametrize("url", [None, ""])
    def test_missing_url_is_required(self, url):
        result = validate_url_request(url_request(url))

        assert isinstance(result, RejectionReason)
        assert result.error == "Image URL is required"
        assert result.constraint == "required"
        assert result.status_code == 400

    @pytest.mark.parametrize("url", [
        "javascript:alert(1)",
        "file:///etc/passwd",
        "data:image/png;base64,AAAA",
        "ftp://example.com/cat.jpg",
    ])
    def test_non_http_schemes_are_rejected(self, url):
        """
        Test: Schemes other than http/https
        How: Validate URLs with javascript:, file:, data: and ftp: schemes
        Ensures: The request is rejected before anything is forwarded
        """
        result = validate_url_request(url_request(url))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid URL format"
        assert result.field == "url"

    @pytest.mark.parametrize("url", ["example.com/cat.jpg", "not a url", "https://", 12345])
    def test_malformed_urls_are_rejected(self, url):
        result = validate_url_request(url_request(url))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid URL format"

    def test_scheme_rejection_names_the_constraint(self):
        result = validate_url_request(url_request("javascript:alert(1)"))
        assert result.constraint == "scheme"

    def test_url_length_boundary(self):
        prefix = "https://example.com/"
        exact = prefix + "a" * (2048 - len(prefix))
        too_long = exact + "a"

        assert isinstance(validate_url_request(url_request(exact)), NormalizedRequest)

        result = validate_url_request(url_request(too_long))
        assert isinstance(result, RejectionReason)
        assert result.error == "URL too long"

    def test_space_in_host_is_rejected(self):
        result = validate_url_request(url_request("https://exa mple.com/a.jpg"))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid URL format"
        assert result.constraint == "format"

    def test_scheme_is_checked_before_length(self):
        result = validate_url_request(url_request("javascript:" + "a" * 3000))
        assert result.error == "Invalid URL format"

    def test_explicit_empty_features_pass_through(self):
        result = validate_url_request(url_request(features=[]))

        assert isinstance(result, NormalizedRequest)
        assert result.features == []
        assert result.visual_features == ""

    def test_explicit_features_are_kept_in_order(self):
        result = validate_url_request(url_request(features=["Faces", "Adult", "Tags"]))
        assert result.features == ["Faces", "Adult", "Tags"]

    @pytest.mark.parametrize("features", ["Tags", {"Tags": True}, 5, ["Tags", 3]])
    def test_non_list_features_are_rejected(self, features):
        result = validate_url_request(url_request(features=features))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid features format"
        assert result.details == "Features must be an array of strings"

    def test_unknown_features_reject_whole_request(self):
        result = validate_url_request(url_request(features=["Tags", "Emotions", "Landmarks"]))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid feature names"
        assert "Emotions" in result.details
        assert "Landmarks" in result.details
        for name in VALID_FEATURES:
            assert name in result.details
        assert result.valid_values == VALID_FEATURES

    def test_url_is_sanitized_after_validation(self):
        result = validate_url_request(url_request("  https://example.com/cat.jpg?onerror=alert(1)  "))

        assert isinstance(result, NormalizedRequest)
        assert result.url == "https://example.com/cat.jpg?alert(1)"


class TestValidateUploadRequest:

    def test_valid_upload(self):
        result = validate_upload_request(upload_request())

        assert isinstance(result, NormalizedRequest)
        assert result.source_kind is SourceKind.UPLOAD
        assert result.size_bytes == 2048
        assert result.mime_type == "image/jpeg"
        assert result.filename == "cat.jpg"
        assert result.features == DEFAULT_FEATURES

    def test_missing_file_names_the_field(self):
        result = validate_upload_request(AnalysisRequest.from_upload(image_bytes=None))

        assert isinstance(result, RejectionReason)
        assert result.error == "No image file provided"
        assert '"image"' in result.details

    @pytest.mark.parametrize("size,accepted,error", [
        (MIN_UPLOAD_BYTES - 1, False, "File too small"),
        (MIN_UPLOAD_BYTES, True, None),
        (MAX_UPLOAD_BYTES, True, None),
        (MAX_UPLOAD_BYTES + 1, False, "File too large"),
    ])
    def test_size_boundaries(self, size, accepted, error):
        result = validate_upload_request(upload_request(size=size))

        if accepted:
            assert isinstance(result, NormalizedRequest)
        else:
            assert isinstance(result, RejectionReason)
            assert result.error == error

    def test_too_large_maps_to_413(self):
        result = validate_upload_request(upload_request(size=MAX_UPLOAD_BYTES + 1))
        assert result.status_code == 413

    def test_empty_file_is_too_small(self):
        result = validate_upload_request(upload_request(size=0))
        assert result.error == "File too small"

    def test_size_is_checked_before_mime_type(self):
        result = validate_upload_request(upload_request(size=10, mime_type="text/plain"))
        assert result.error == "File too small"

    @pytest.mark.parametrize("mime_type", SUPPORTED_MIME_TYPES)
    def test_supported_mime_types(self, mime_type):
        assert isinstance(validate_upload_request(upload_request(mime_type=mime_type)), NormalizedRequest)

    @pytest.mark.parametrize("mime_type", ["image/tiff", "image/svg+xml", "application/pdf", None])
    def test_unsupported_mime_types(self, mime_type):
        result = validate_upload_request(upload_request(mime_type=mime_type))

        assert isinstance(result, RejectionReason)
        assert result.error == "Unsupported file type"
        assert result.status_code == 415
        assert result.valid_values == SUPPORTED_MIME_TYPES

    def test_comma_separated_features_are_trimmed(self):
        result = validate_upload_request(upload_request(features="Tags, Objects"))
        assert result.features == ["Tags", "Objects"]

    def test_json_features(self):
        result = validate_upload_request(upload_request(features='["Faces", "Brands"]'))
        assert result.features == ["Faces", "Brands"]

    def test_json_empty_list_is_not_defaulted(self):
        result = validate_upload_request(upload_request(features="[]"))
        assert result.features == []

    def test_json_non_list_is_rejected(self):
        result = validate_upload_request(upload_request(features='{"Tags": true}'))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid features format"

    def test_unknown_upload_feature_rejects_request(self):
        result = validate_upload_request(upload_request(features="Tags, Emotions"))

        assert isinstance(result, RejectionReason)
        assert result.error == "Invalid feature names"
        assert "Invalid features: Emotions." in result.details

    def test_filename_is_sanitized(self):
        result = validate_upload_request(upload_request(filename="<script>alert(1)</script>cat.jpg"))
        assert result.filename == "cat.jpg"
