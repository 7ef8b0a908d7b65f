"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `flag_latency.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .probe_error import ProbeError
from .api_error import ApiError
from .configuration_error import ConfigurationError
from .correlation_timeout_error import CorrelationTimeoutError
from .initialization_error import InitializationError
from .stream_error import StreamError
from .classification import classify_exception, code_for_status

__all__ = [
    "ErrorCode",
    "ProbeError",
    "ApiError",
    "ConfigurationError",
    "CorrelationTimeoutError",
    "InitializationError",
    "StreamError",
    "classify_exception",
    "code_for_status",
]
