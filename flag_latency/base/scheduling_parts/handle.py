"""Cancellable handle returned by subscriptions and timers.

A handle wraps an optional release callback. ``cancel`` runs it at most once,
no matter how many times or from how many threads it is called.
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, Optional


class Handle:
    """Idempotent, thread-safe cancellation handle."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None, *, label: str = "") -> None:
        self._lock = Lock()
        self._cancelled = False
        self._on_cancel = on_cancel
        self.label = label

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether ``cancel`` has been called."""
        return self._cancelled

    def cancel(self) -> None:
        """Release the underlying registration (first call only)."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callback, self._on_cancel = self._on_cancel, None
        if callback is not None:
            callback()

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"Handle(label={self.label!r}, cancelled={self._cancelled})"


__all__ = ["Handle"]
