"""Unified configuration layer for the latency probe.

Goals
-----
* Merge sources in a predictable order (later wins):
    1. Built-in defaults (on :class:`ProbeSettings`)
    2. Optional config file (JSON or YAML) named by ``FLAG_LATENCY_CONFIG_FILE``
    3. ``.env`` file and process environment (``LD_SDK_KEY``, ``LD_API_TOKEN``,
       ``LD_PROJECT``, ``LD_ENVIRONMENT``, ``LD_FLAG_KEY``, ``LD_CONTEXT``)
    4. Explicit overrides (CLI options)
* Validate once, at the edge, and surface failures as
  :class:`~flag_latency.base.errors.ConfigurationError`.

Config File
-----------
Keys may be given in snake_case or in the camelCase used by the CLI::

    sdkKey: sdk-123
    projectKey: default
    environmentKey: production
    flagKey: latency-probe
    context:
      kind: user
      key: probe-user

Public API
----------
* resolve_settings(overrides: Mapping | None = None) -> ProbeSettings
* load_config_file(path) -> dict
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..base.errors import ConfigurationError
from .env import env_values, load_dotenv_once
from .settings import DEFAULT_API_BASE_URL, ProbeSettings

CONFIG_FILE_ENV = "FLAG_LATENCY_CONFIG_FILE"

# camelCase CLI option names -> settings field
KEY_ALIASES: Dict[str, str] = {
    "sdkKey": "sdk_key",
    "apiToken": "api_token",
    "projectKey": "project_key",
    "environmentKey": "environment_key",
    "flagKey": "flag_key",
    "logLevel": "log_level",
    "apiBaseUrl": "api_base_url",
}


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(k, k): v for k, v in data.items()}


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load a JSON or YAML settings file; missing path yields ``{}``.

    JSON is tried first; YAML (a superset) is used when JSON parsing fails.

    Raises:
        ConfigurationError: If the file exists but is not a mapping.
    """
    if not path:
        return {}
    p = Path(path).expanduser()
    if not p.is_file():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(message=f"cannot parse config file {p}: {exc}", raw=exc) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(message=f"config file {p} must contain a mapping")
    return _normalize_keys(data)


def resolve_settings(overrides: Optional[Mapping[str, Any]] = None, *, use_dotenv: bool = True) -> ProbeSettings:
    """Merge every configuration source and validate the result.

    Parameters
    ----------
    overrides:
        Highest-precedence values (typically parsed CLI options). ``None``
        values are ignored so unset options fall through to the environment.
    use_dotenv:
        Read the ``.env`` file before consulting the environment.

    Raises
    ------
    ConfigurationError
        When the merged values fail validation. ``fields`` lists the
        offending settings.
    """
    if use_dotenv:
        load_dotenv_once()
    merged: Dict[str, Any] = {"api_base_url": DEFAULT_API_BASE_URL}
    merged |= load_config_file(os.getenv(CONFIG_FILE_ENV))
    merged |= env_values()
    if overrides:
        merged |= {k: v for k, v in _normalize_keys(overrides).items() if v is not None}
    try:
        return ProbeSettings(**merged)
    except ValidationError as exc:
        fields = tuple(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        raise ConfigurationError(message=f"invalid settings: {details}", fields=fields, raw=exc) from exc


__all__ = [
    "CONFIG_FILE_ENV",
    "KEY_ALIASES",
    "ProbeSettings",
    "load_config_file",
    "resolve_settings",
]
