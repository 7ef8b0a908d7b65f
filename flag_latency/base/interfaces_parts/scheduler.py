"""Scheduler Protocol (single-class module)."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from ..scheduling import Handle


@runtime_checkable
class Scheduler(Protocol):
    """Arms delayed callbacks for the coordinator's bounded waits."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None], *, label: str = "") -> Handle:  # pragma: no cover - interface
        """Run ``callback`` once after ``delay_seconds`` unless the handle is cancelled."""
        ...
