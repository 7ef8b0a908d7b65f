"""No matching flag-change notification arrived within the bounded wait."""
from __future__ import annotations

from dataclasses import dataclass, field

from .error_code import ErrorCode
from .probe_error import ProbeError


@dataclass
class CorrelationTimeoutError(ProbeError):
    """Raised (surfaced) when the coordinator gives up waiting for an update.

    Attributes:
        waited_seconds: The maximum wait that elapsed.
    """

    code: ErrorCode = field(default=ErrorCode.CORRELATION_TIMEOUT)
    message: str = "no matching update notification received"
    waited_seconds: float = 0.0


__all__ = ["CorrelationTimeoutError"]
