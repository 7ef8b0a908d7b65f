"""Structured logging context object for probe events.

This module defines :class:`LogContext`, a dataclass carrying the fields every
trial log line shares (project, environment, flag and trial number plus extra
metadata). ``to_dict`` merges the ``extra`` mapping and prunes ``None`` values
for clean structured output.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for probe logging events."""

    project_key: Optional[str] = None
    environment_key: Optional[str] = None
    flag_key: Optional[str] = None
    trial: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}

    def for_trial(self, trial: int) -> "LogContext":
        """Return a copy bound to a specific trial number."""
        return replace(self, trial=trial, extra=dict(self.extra))


__all__ = ["LogContext"]
