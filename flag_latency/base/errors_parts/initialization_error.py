"""Fatal start-up failure of the update client or the initial flag read."""
from __future__ import annotations

from dataclasses import dataclass, field

from .error_code import ErrorCode
from .probe_error import ProbeError


@dataclass
class InitializationError(ProbeError):
    """Raised when the SDK never becomes ready or the first flag read fails.

    No trial can run after this error; the CLI terminates the process.
    """

    code: ErrorCode = field(default=ErrorCode.INITIALIZATION)
    message: str = "update client failed to initialize"


__all__ = ["InitializationError"]
