"""Unified timing configuration for the latency probe.

This module centralizes every duration the probe waits on: the control-plane
HTTP request, the update client's start-up wait, the settle delay that
absorbs clock jitter after a notification arrives, and the bounded wait for a
correlated notification. No other module hard-codes these values.

Key Components
--------------
TimeoutConfig
    Frozen dataclass of normalized durations (seconds).

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use (and again whenever the override values change). Supported
    environment variables (all optional, positive floats):
        FLAG_LATENCY_HTTP_TIMEOUT_SECONDS
        FLAG_LATENCY_INIT_TIMEOUT_SECONDS
        FLAG_LATENCY_SETTLE_DELAY_SECONDS
        FLAG_LATENCY_MAX_WAIT_SECONDS
"""
from __future__ import annotations

import os
from dataclasses import dataclass

HTTP_TIMEOUT_ENV = "FLAG_LATENCY_HTTP_TIMEOUT_SECONDS"
INIT_TIMEOUT_ENV = "FLAG_LATENCY_INIT_TIMEOUT_SECONDS"
SETTLE_DELAY_ENV = "FLAG_LATENCY_SETTLE_DELAY_SECONDS"
MAX_WAIT_ENV = "FLAG_LATENCY_MAX_WAIT_SECONDS"


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized durations (seconds).

    Attributes:
        http_timeout_seconds: Timeout for a single control-plane request.
        init_timeout_seconds: Bounded wait for the update client to become
            ready at start-up.
        settle_delay_seconds: Fixed delay after a matching notification
            before the trial is finalized.
        max_wait_seconds: Maximum time a trial waits for a matching
            notification before it is aborted.
    """

    http_timeout_seconds: float = 30.0
    init_timeout_seconds: float = 10.0
    settle_delay_seconds: float = 3.0
    max_wait_seconds: float = 30.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse an environment variable as a positive float with a fallback default."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    names = (HTTP_TIMEOUT_ENV, INIT_TIMEOUT_ENV, SETTLE_DELAY_ENV, MAX_WAIT_ENV)
    cur_guard = "/".join(os.getenv(n, "") for n in names)
    if _CACHED is not None and _ENV_GUARD == cur_guard:
        return _CACHED

    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        http_timeout_seconds=_parse_env_float(HTTP_TIMEOUT_ENV, defaults.http_timeout_seconds),
        init_timeout_seconds=_parse_env_float(INIT_TIMEOUT_ENV, defaults.init_timeout_seconds),
        settle_delay_seconds=_parse_env_float(SETTLE_DELAY_ENV, defaults.settle_delay_seconds),
        max_wait_seconds=_parse_env_float(MAX_WAIT_ENV, defaults.max_wait_seconds),
    )
    _ENV_GUARD = cur_guard
    return _CACHED


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
]
