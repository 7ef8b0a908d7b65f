"""
Normalized probe error codes (taxonomy).

Defines the `ErrorCode` enumeration used by the mutator, the update client
adapter and the trial coordinator. Values are lowercase snake_case and are
considered a stable public contract for logging.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    INITIALIZATION = "initialization"
    CONFIGURATION = "configuration"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    TRANSIENT = "transient"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
    UNAVAILABLE = "unavailable"
    STREAM = "stream"
    CORRELATION_TIMEOUT = "correlation_timeout"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
