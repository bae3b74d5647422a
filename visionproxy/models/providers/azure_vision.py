from __future__ import annotations
from typing import Any, Dict, Optional
import asyncio
import logging
import socket
import time
import httpx

from .base import VisionProvider, ForwardOk, ForwardErr, ForwardResult, TransportError, VisionProviderError, VisionTimeout
from ...config.settings import Settings
from ...pipeline.analysis.types import NormalizedRequest, SourceKind
from ...pipeline.analysis.validation import MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/vision/v3.2/analyze"
SUBSCRIPTION_HEADER = "Ocp-Apim-Subscription-Key"

_DNS_MARKERS = ("name or service not known", "nodename nor servname", "getaddrinfo", "temporary failure in name resolution")

def _classify_connect_error(exc: BaseException) -> TransportError:
    """Walk the exception chain looking for the socket-level cause."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return TransportError.DNS
        if isinstance(current, ConnectionRefusedError):
            return TransportError.CONNECTION_REFUSED
        current = current.__cause__ or current.__context__

    message = str(exc).lower()
    if any(marker in message for marker in _DNS_MARKERS):
        return TransportError.DNS
    if "refused" in message:
        return TransportError.CONNECTION_REFUSED
    return TransportError.OTHER

class VisionRequestFailed(VisionProviderError):
    def __init__(self, message: str, transport_error: TransportError):
        super().__init__(message)
        self.transport_error = transport_error

class AzureVisionProvider(VisionProvider):
    """
    Forwards normalized requests to the Azure Computer Vision analyze operation.

    Exactly one outbound call per request, no retries. One AsyncClient (and so
    one connection pool) is shared by every request the process handles.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint = (settings.azure_endpoint or "").rstrip("/")
        self.api_key = settings.azure_api_key
        self.timeout = settings.request_timeout_s
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=transport)

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}{ANALYZE_PATH}"

    def _build_request(self, request: NormalizedRequest) -> Dict[str, Any]:
        params = {"visualFeatures": request.visual_features, "details": "", "language": "en"}
        headers = {SUBSCRIPTION_HEADER: self.api_key or ""}

        if request.source_kind is SourceKind.URL:
            return {"params": params, "headers": headers, "json": {"url": request.url}}

        # Enforced again here so a bypassed size check never reaches the wire
        body = request.image_bytes or b""
        if len(body) > MAX_UPLOAD_BYTES:
            raise VisionRequestFailed(
                f"Outbound body of {len(body)} bytes exceeds {MAX_UPLOAD_BYTES} bytes",
                TransportError.PAYLOAD_TOO_LARGE,
            )
        headers["Content-Type"] = "application/octet-stream"
        return {"params": params, "headers": headers, "content": body}

    async def _send(self, request: NormalizedRequest) -> httpx.Response:
        if not self.endpoint or not self.api_key:
            raise VisionRequestFailed("Azure endpoint or API key is not configured", TransportError.NOT_CONFIGURED)

        kwargs = self._build_request(request)
        try:
            # httpx limits each phase; wait_for caps the whole exchange, body included
            return await asyncio.wait_for(self.client.post(self.analyze_url, **kwargs), self.timeout)
        except asyncio.TimeoutError as e:
            raise VisionTimeout(f"Azure timeout after {self.timeout}s") from e
        except httpx.TimeoutException as e:
            raise VisionTimeout(f"Azure timeout after {self.timeout}s: {e}") from e
        except httpx.ConnectError as e:
            raise VisionRequestFailed(f"Azure connection failed: {e}", _classify_connect_error(e)) from e
        except httpx.HTTPError as e:
            raise VisionRequestFailed(f"Azure request failed: {e}", TransportError.OTHER) from e

    async def analyze(self, request: NormalizedRequest) -> ForwardResult:
        t0 = time.perf_counter()
        try:
            response = await self._send(request)
        except VisionTimeout as e:
            logger.warning(str(e))
            return ForwardErr(message=str(e), transport_error=TransportError.TIMEOUT)
        except VisionRequestFailed as e:
            logger.warning(str(e))
            return ForwardErr(message=str(e), transport_error=e.transport_error)
        except Exception as e:
            logger.exception("Unexpected error calling Azure")
            return ForwardErr(message=f"Azure provider error: {e}", transport_error=TransportError.OTHER)

        dt = time.perf_counter() - t0
        headers = dict(response.headers)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_success:
            if payload is None:
                return ForwardErr(message="Azure returned a non-JSON success body", transport_error=TransportError.OTHER)
            logger.info("Analysis complete in %.2fs", dt)
            return ForwardOk(payload=payload, headers=headers)

        logger.warning("Azure responded %s after %.2fs: %s", response.status_code, dt, payload if payload is not None else response.text[:500])
        return ForwardErr(
            message=f"Azure responded with status {response.status_code}",
            status_code=response.status_code,
            payload=payload,
            headers=headers,
        )

    def health_check(self) -> bool:
        """Configuration check only; the service is never called from here."""
        return bool(self.endpoint) and bool(self.api_key)

    async def aclose(self) -> None:
        await self.client.aclose()
