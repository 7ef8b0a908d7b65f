"""flag_latency.config.env
=======================

Environment variable mapping and helpers for probe settings.

Purpose
-------
- Provide a single source of truth mapping each setting to the environment
  variable(s) it may be read from (canonical name first, aliases after).
- Load a ``.env`` file once per process without overriding real values.

Failure Modes
-------------
- Helpers never raise on unset variables; they return ``None`` or omit the
  key so callers decide how to proceed (validation happens in
  :class:`~flag_latency.config.settings.ProbeSettings`).
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Tuple

# Setting name -> ordered env var names (canonical first)
ENV_MAP: Dict[str, Tuple[str, ...]] = {
    "sdk_key": ("LD_SDK_KEY",),
    "api_token": ("LD_API_TOKEN",),
    "project_key": ("LD_PROJECT", "LD_PROJECT_KEY"),
    "environment_key": ("LD_ENVIRONMENT", "LD_ENVIRONMENT_KEY"),
    "flag_key": ("LD_FLAG_KEY",),
    "context": ("LD_CONTEXT",),
    "log_level": ("FLAG_LATENCY_LOG_LEVEL",),
    "api_base_url": ("LD_API_BASE_URL",),
}

DOTENV_PATH_ENV = "DOTENV_FILE"

_DOTENV_LOADED = False


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder value.

    Heuristics: contains 'placeholder', 'changeme', 'your-', or is wrapped in
    angle brackets (``<sdk-key>``). Case-insensitive and resilient to
    surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or v.startswith("your-")
        or (v.startswith("<") and v.endswith(">"))
    )


def get_env_var_candidates(setting: str) -> Iterable[str]:
    """Yield acceptable environment variable names for a setting, canonical first."""
    yield from ENV_MAP.get(setting, ())


def resolve_env_value(setting: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, env_var_used)`` for the first non-empty candidate.

    ``(None, None)`` when nothing is set.
    """
    for name in get_env_var_candidates(setting):
        if val := os.environ.get(name):
            return val, name
    return None, None


def env_values() -> Dict[str, str]:
    """Collect every setting that has a non-empty environment value."""
    out: Dict[str, str] = {}
    for setting in ENV_MAP:
        value, _ = resolve_env_value(setting)
        if value is not None:
            out[setting] = value
    return out


def load_dotenv_once(path: Optional[str] = None) -> bool:
    """Lightweight ``.env`` loader.

    Parses KEY=VALUE lines, ignoring comments, blank lines and a leading
    ``export``. Existing environment variables win unless their current value
    is a placeholder. Safe to call repeatedly; only the first call reads.

    Returns
    -------
    bool
        True when a file was read on this call.
    """
    global _DOTENV_LOADED  # noqa: PLW0603 - module-level once flag
    if _DOTENV_LOADED:
        return False
    _DOTENV_LOADED = True
    path = path or os.getenv(DOTENV_PATH_ENV, ".env")
    if not os.path.isfile(path):
        return False
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            k, v = line.split("=", 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                os.environ[k] = v
    return True


def reset_dotenv_state() -> None:
    """Allow the next :func:`load_dotenv_once` call to read again (tests)."""
    global _DOTENV_LOADED  # noqa: PLW0603
    _DOTENV_LOADED = False


__all__ = [
    "ENV_MAP",
    "DOTENV_PATH_ENV",
    "is_placeholder",
    "get_env_var_candidates",
    "resolve_env_value",
    "env_values",
    "load_dotenv_once",
    "reset_dotenv_state",
]
