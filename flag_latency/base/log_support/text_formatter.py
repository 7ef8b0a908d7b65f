"""Human-readable formatter for structured probe events.

Console output in interactive sessions should read like status lines, not
JSON. Structured events carrying a ``message`` key are rendered as that message
followed by their remaining fields; anything else is passed through unchanged.
"""
from __future__ import annotations

import contextlib
import json
import logging

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Keys already visible through the message or the context prefix.
_QUIET_KEYS = frozenset(("event", "message", "project_key", "environment_key", "flag_key"))


class TextFormatter(logging.Formatter):
    """Render ``log_event`` payloads as ``<message> [k=v ...]``."""

    def __init__(self, fmt: str = PLAIN_FORMAT, show_fields: bool = True) -> None:
        super().__init__(fmt)
        self._show_fields = show_fields

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802 - logging API
        text = record.message
        with contextlib.suppress(ValueError):
            parsed = json.loads(text)
            if isinstance(parsed, dict) and "message" in parsed:
                rendered = str(parsed["message"])
                if self._show_fields:
                    extras = " ".join(
                        f"{k}={v}" for k, v in parsed.items() if k not in _QUIET_KEYS and v is not None
                    )
                    if extras:
                        rendered = f"{rendered} [{extras}]"
                record.message = rendered
        return super().formatMessage(record)


__all__ = ["TextFormatter", "PLAIN_FORMAT"]
