"""
Control-plane mutation failure.

Covers non-success HTTP statuses, transport failures and responses that do not
carry the expected environment. ``status`` is ``None`` when no HTTP response
was received at all.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .error_code import ErrorCode
from .probe_error import ProbeError


@dataclass
class ApiError(ProbeError):
    """Structured mutation error.

    Attributes:
        status: HTTP status code of the failed response, if any.
    """

    code: ErrorCode = field(default=ErrorCode.UNKNOWN)
    message: str = "mutation request failed"
    status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        status = self.status if self.status is not None else "-"
        return f"{self.code.value} (status {status}): {self.message}"


__all__ = ["ApiError"]
