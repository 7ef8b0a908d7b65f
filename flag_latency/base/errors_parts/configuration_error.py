"""Invalid or incomplete probe settings."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .error_code import ErrorCode
from .probe_error import ProbeError


@dataclass
class ConfigurationError(ProbeError):
    """Raised when settings cannot be resolved into a valid ``ProbeSettings``.

    Attributes:
        fields: Names of the offending settings, when known.
    """

    code: ErrorCode = field(default=ErrorCode.CONFIGURATION)
    message: str = "invalid configuration"
    fields: Tuple[str, ...] = ()


__all__ = ["ConfigurationError"]
