import logging
from typing import Callable

from .translator import internal_failure, rejection_to_failure, translate
from .types import AnalysisOutcome, AnalysisRequest, RejectionReason
from .validation import ValidationResult, validate_upload_request, validate_url_request
from ...models.providers.base import VisionProvider

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Validate, forward, translate.

    Rejected requests never reach the provider. Whatever happens, the caller
    gets an AnalysisOutcome back, never an exception.
    """

    def __init__(self, provider: VisionProvider):
        self.provider = provider

    async def analyze_url(self, request: AnalysisRequest) -> AnalysisOutcome:
        return await self._run(request, validate_url_request)

    async def analyze_upload(self, request: AnalysisRequest) -> AnalysisOutcome:
        return await self._run(request, validate_upload_request)

    async def _run(self, request: AnalysisRequest, validate: Callable[[AnalysisRequest], ValidationResult]) -> AnalysisOutcome:
        try:
            normalized = validate(request)
            if isinstance(normalized, RejectionReason):
                logger.info("Rejected %s request: %s (%s)", request.source_kind.value, normalized.error, normalized.constraint)
                return rejection_to_failure(normalized)

            result = await self.provider.analyze(normalized)
            return translate(result, normalized)
        except Exception:
            logger.exception("Unexpected failure during %s analysis", request.source_kind.value)
            return internal_failure(request.source_kind)
