"""
Request outcomes and failure taxonomy.

Every bounded call resolves to exactly one of:
- Success(value)
- Failure(reason)

Terminal acquisition errors are raised as AcquisitionError subclasses
once both the retry budget and the fallback source are exhausted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why a single attempt failed."""
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    SERVER_REJECTED = "server_rejected"
    ABORTED = "aborted"


@dataclass(frozen=True)
class FailureReason:
    """
    Reason attached to a failed attempt.

    `detail` is free text for diagnostics; `status_code` is only set
    for SERVER_REJECTED.
    """
    kind: FailureKind
    detail: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def timeout(cls, seconds: float) -> "FailureReason":
        return cls(FailureKind.TIMEOUT, f"no response within {seconds:g}s")

    @classmethod
    def transport_error(cls, detail: str) -> "FailureReason":
        return cls(FailureKind.TRANSPORT_ERROR, detail)

    @classmethod
    def server_rejected(cls, status_code: int, detail: Optional[str] = None) -> "FailureReason":
        return cls(FailureKind.SERVER_REJECTED, detail, status_code)

    @classmethod
    def aborted(cls, detail: str = "operation was cancelled") -> "FailureReason":
        return cls(FailureKind.ABORTED, detail)

    def describe(self) -> str:
        if self.kind is FailureKind.SERVER_REJECTED:
            text = f"server rejected request with status {self.status_code}"
            return f"{text} ({self.detail})" if self.detail else text
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'detail': self.detail,
            'status_code': self.status_code,
        }

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: FailureReason

    @property
    def ok(self) -> bool:
        return False


RequestOutcome = Union[Success[Any], Failure]


class SourceOrigin(str, Enum):
    """Which source produced an acquisition result."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Value returned by a successful acquisition."""
    value: T
    origin: SourceOrigin

    @property
    def is_fallback(self) -> bool:
        return self.origin is SourceOrigin.FALLBACK


class TransportError(Exception):
    """Raised by transports when a request could not be completed."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ServerRejectedError(TransportError):
    """Raised by transports when the server answered with a non-success status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(detail or f"status {status_code}")
        self.status_code = status_code


class AcquisitionError(Exception):
    """Base class for terminal acquisition failures."""

    def __init__(self, key: Any, message: str):
        super().__init__(message)
        self.key = key

    def reasons(self) -> dict:
        raise NotImplementedError


class PrimarySourceFailed(AcquisitionError):
    """Primary source exhausted and no fallback was attempted."""

    def __init__(self, key: Any, reason: FailureReason):
        super().__init__(key, f"primary source failed for {key!r}: {reason.describe()}")
        self.reason = reason

    def reasons(self) -> dict:
        return {'primary': self.reason.to_dict()}


class BothSourcesFailed(AcquisitionError):
    """Primary source exhausted and the fallback attempt failed too."""

    def __init__(self, key: Any, primary_reason: FailureReason, fallback_reason: FailureReason):
        super().__init__(
            key,
            f"both sources failed for {key!r}: "
            f"primary: {primary_reason.describe()}; "
            f"fallback: {fallback_reason.describe()}"
        )
        self.primary_reason = primary_reason
        self.fallback_reason = fallback_reason

    def reasons(self) -> dict:
        return {
            'primary': self.primary_reason.to_dict(),
            'fallback': self.fallback_reason.to_dict(),
        }


class AcquisitionAborted(AcquisitionError):
    """The acquisition was cancelled before either source answered."""

    def __init__(self, key: Any, reason: Optional[FailureReason] = None):
        self.reason = reason or FailureReason.aborted()
        super().__init__(key, f"acquisition aborted for {key!r}: {self.reason.describe()}")

    def reasons(self) -> dict:
        return {'aborted': self.reason.to_dict()}
