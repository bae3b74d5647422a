from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from ...pipeline.analysis.types import NormalizedRequest

#unified provider errors
class VisionProviderError(RuntimeError): ...
class VisionTimeout(VisionProviderError): ...

class TransportError(Enum):
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION_REFUSED = "connection_refused"
    NOT_CONFIGURED = "not_configured"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    OTHER = "other"

@dataclass(frozen=True)
class ForwardOk:
    payload: Any #service-native JSON, passed through untouched
    headers: Dict[str, str] = field(default_factory=dict)

@dataclass(frozen=True)
class ForwardErr:
    message: str #raw detail, for server-side logs only
    status_code: Optional[int] = None #set only when the service responded
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    transport_error: Optional[TransportError] = None

    @property
    def responded(self) -> bool:
        return self.status_code is not None

ForwardResult = Union[ForwardOk, ForwardErr]

class VisionProvider(ABC):
    @abstractmethod
    async def analyze(self, request: NormalizedRequest) -> ForwardResult:
        raise NotImplementedError

    @abstractmethod
    def health_check(self) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
