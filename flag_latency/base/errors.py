"""Unified probe error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``flag_latency.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.probe_error import ProbeError
from .errors_parts.api_error import ApiError
from .errors_parts.configuration_error import ConfigurationError
from .errors_parts.correlation_timeout_error import CorrelationTimeoutError
from .errors_parts.initialization_error import InitializationError
from .errors_parts.stream_error import StreamError
from .errors_parts.classification import classify_exception, code_for_status

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
