"""
Validated probe settings.

Purpose
-------
``ProbeSettings`` is the only configuration object the application layer
hands to the core. Every source (CLI, environment, ``.env``, config file) is
merged into a plain mapping first and validated here, so the coordinator,
mutator and update client never see a missing key or malformed context.

Failure semantics: construction raises ``pydantic.ValidationError``;
:func:`flag_latency.config.resolve_settings` converts that into
:class:`~flag_latency.base.errors.ConfigurationError`.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .env import is_placeholder

LogLevel = Literal["debug", "info", "warn", "error", "none"]

DEFAULT_API_BASE_URL = "https://app.launchdarkly.com"


class ProbeSettings(BaseModel):
    """Settings for one probe process.

    Attributes:
        sdk_key: Server-side SDK key of the target environment.
        api_token: REST API access token allowed to update the flag.
        project_key: Project containing the flag.
        environment_key: Environment in which the flag is toggled.
        flag_key: Boolean flag under test.
        context: Evaluation context (must carry a ``key``); JSON text accepted.
        log_level: Probe and SDK logging level.
        api_base_url: Control-plane base URL.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sdk_key: str = Field(min_length=1)
    api_token: str = Field(min_length=1)
    project_key: str = Field(min_length=1)
    environment_key: str = Field(min_length=1)
    flag_key: str = Field(min_length=1)
    context: Dict[str, Any]
    log_level: LogLevel = "info"
    api_base_url: str = DEFAULT_API_BASE_URL

    @field_validator("sdk_key", "api_token", "project_key", "environment_key", "flag_key", mode="before")
    @classmethod
    def _strip_and_reject_placeholders(cls, value: Any) -> Any:
        """Trim whitespace and reject obvious placeholder values."""
        if isinstance(value, str):
            value = value.strip()
            if is_placeholder(value):
                raise ValueError("placeholder value is not allowed")
        return value

    @field_validator("context", mode="before")
    @classmethod
    def _parse_context(cls, value: Any) -> Any:
        """Accept JSON text for the context and require an object with a key."""
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"context is not valid JSON: {exc.msg}") from exc
        if not isinstance(value, dict):
            raise ValueError("context must be a JSON object")
        if not value.get("key"):
            raise ValueError("context must include a non-empty 'key'")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "warning":
                return "warn"
        return value

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


__all__ = ["ProbeSettings", "LogLevel", "DEFAULT_API_BASE_URL"]
