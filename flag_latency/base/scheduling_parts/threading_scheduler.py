"""``threading.Timer`` backed scheduler.

Each call arms one daemon timer. Cancelling the returned handle stops the
timer if it has not fired yet; a timer that already fired is unaffected.
"""

from __future__ import annotations

import threading
from typing import Callable

from .handle import Handle


class ThreadingScheduler:
    """Run callbacks after a delay on short-lived timer threads."""

    def __init__(self, *, name_prefix: str = "flag-latency-timer") -> None:
        self._name_prefix = name_prefix

    def call_later(self, delay_seconds: float, callback: Callable[[], None], *, label: str = "") -> Handle:
        """Schedule ``callback`` after ``delay_seconds`` and return its handle."""
        timer = threading.Timer(max(0.0, delay_seconds), callback)
        timer.daemon = True
        timer.name = f"{self._name_prefix}-{label}" if label else self._name_prefix
        handle = Handle(timer.cancel, label=label)
        timer.start()
        return handle


__all__ = ["ThreadingScheduler"]
