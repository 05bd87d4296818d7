"""
Typed failures raised by the setup source and converter clients.

Transport problems (timeouts, non-success statuses, dropped connections) are
raised as one of the subclasses below. Responses that arrive fine but do not
have the expected shape are never raised; the clients return ``None`` instead.
"""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Which external call failed."""
    DISCOVERY = "discovery"
    RAW_FETCH = "raw_fetch"
    CONVERSION = "conversion"


class SetupSourceError(Exception):
    """Base class for transport failures talking to an external service."""

    kind: FailureKind
    prefix: str = "Request"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        timed_out: bool = False,
        timeout_sec: Optional[float] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.timed_out = timed_out
        self.timeout_sec = timeout_sec

    @classmethod
    def from_status(cls, status: int) -> "SetupSourceError":
        """Build the error for a non-success HTTP status."""
        return cls(f"{cls.status_prefix()}: {status}", status=status)

    @classmethod
    def from_timeout(cls, timeout_sec: float) -> "SetupSourceError":
        """Build the error for an expired request timeout."""
        return cls(
            f"{cls.prefix} timeout ({timeout_sec:g}s)",
            timed_out=True,
            timeout_sec=timeout_sec,
        )

    @classmethod
    def from_connection(cls, exc: Exception) -> "SetupSourceError":
        """Build the error for a connection-level failure."""
        detail = str(exc) or exc.__class__.__name__
        return cls(f"{cls.prefix} connection error: {detail}")

    @classmethod
    def status_prefix(cls) -> str:
        return f"{cls.prefix} error"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status": self.status,
            "timed_out": self.timed_out,
        }


class DiscoveryError(SetupSourceError):
    """The repository tree listing could not be retrieved."""
    kind = FailureKind.DISCOVERY
    prefix = "GitHub request"

    @classmethod
    def status_prefix(cls) -> str:
        return "GitHub API error"


class RawFetchError(SetupSourceError):
    """The raw setup file could not be downloaded."""
    kind = FailureKind.RAW_FETCH
    prefix = "Raw setup fetch"

    @classmethod
    def status_prefix(cls) -> str:
        return "Raw setup fetch failed"


class ConversionError(SetupSourceError):
    """The converter rejected the upload or did not answer in time."""
    kind = FailureKind.CONVERSION
    prefix = "GoSetups request"

    @classmethod
    def status_prefix(cls) -> str:
        return "GoSetups upload failed"
