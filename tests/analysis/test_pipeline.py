import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from visionproxy.models.providers.base import ForwardErr, ForwardOk, TransportError, VisionProvider
from visionproxy.pipeline.analysis.analysis import AnalysisPipeline
from visionproxy.pipeline.analysis.types import (
    DEFAULT_FEATURES,
    AnalysisFailure,
    AnalysisRequest,
    AnalysisSuccess,
    ErrorKind,
    NormalizedRequest,
)


@pytest.fixture
def provider():
    mock = Mock(spec=VisionProvider)
    mock.analyze = AsyncMock(return_value=ForwardOk(payload={"tags": []}, headers={"apim-request-id": "r-1"}))
    return mock


@pytest.fixture
def pipeline(provider):
    return AnalysisPipeline(provider)


class TestAnalysisPipeline:

    def test_url_success(self, pipeline, provider):
        outcome = asyncio.run(pipeline.analyze_url(AnalysisRequest.from_url_body("https://example.com/cat.jpg")))

        assert isinstance(outcome, AnalysisSuccess)
        assert outcome.request_id == "r-1"
        assert outcome.features_used == DEFAULT_FEATURES

        forwarded = provider.analyze.call_args[0][0]
        assert isinstance(forwarded, NormalizedRequest)
        assert forwarded.url == "https://example.com/cat.jpg"

    def test_rejection_never_reaches_provider(self, pipeline, provider):
        """
        Test: Invalid input short-circuits the pipeline
        How: Submit a javascript: URL
        Ensures: The provider is never called and a 400 envelope is produced
        """
        outcome = asyncio.run(pipeline.analyze_url(AnalysisRequest.from_url_body("javascript:alert(1)")))

        assert isinstance(outcome, AnalysisFailure)
        assert outcome.kind is ErrorKind.VALIDATION_REJECTION
        assert outcome.http_status == 400
        provider.analyze.assert_not_called()

    def test_upload_rejection_never_reaches_provider(self, pipeline, provider):
        request = AnalysisRequest.from_upload(image_bytes=b"x" * 10, filename="a.jpg", mime_type="image/jpeg")
        outcome = asyncio.run(pipeline.analyze_upload(request))

        assert outcome.user_message == "File too small"
        provider.analyze.assert_not_called()

    def test_upload_success(self, pipeline, provider):
        request = AnalysisRequest.from_upload(
            image_bytes=b"\x89PNG" + b"\x00" * 4096, filename="a.png", mime_type="image/png", features="Tags"
        )
        outcome = asyncio.run(pipeline.analyze_upload(request))

        assert isinstance(outcome, AnalysisSuccess)
        assert outcome.filename == "a.png"
        assert outcome.size_bytes == 4100
        assert outcome.features_used == ["Tags"]
        assert provider.analyze.call_args[0][0].visual_features == "Tags"

    def test_transport_failure_is_translated(self, pipeline, provider):
        provider.analyze.return_value = ForwardErr(message="timeout", transport_error=TransportError.TIMEOUT)

        outcome = asyncio.run(pipeline.analyze_url(AnalysisRequest.from_url_body("https://example.com/cat.jpg")))

        assert outcome.http_status == 504

    def test_unexpected_exception_degrades_to_500(self, pipeline, provider):
        provider.analyze.side_effect = RuntimeError("boom")

        outcome = asyncio.run(pipeline.analyze_url(AnalysisRequest.from_url_body("https://example.com/cat.jpg")))

        assert isinstance(outcome, AnalysisFailure)
        assert outcome.kind is ErrorKind.INTERNAL_FAILURE
        assert outcome.http_status == 500
        assert "boom" not in outcome.detail
