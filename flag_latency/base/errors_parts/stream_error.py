"""Error reported by the update client's persistent connection."""
from __future__ import annotations

from dataclasses import dataclass, field

from .error_code import ErrorCode
from .probe_error import ProbeError


@dataclass
class StreamError(ProbeError):
    """Aborts any in-flight trial; the process keeps running."""

    code: ErrorCode = field(default=ErrorCode.STREAM)
    message: str = "update stream reported an error"


__all__ = ["StreamError"]
