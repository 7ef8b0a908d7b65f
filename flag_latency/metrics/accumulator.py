"""Thread-safe running average of trial latencies.

Trials are folded in completion order with the standard cumulative mean:

    value' = (value * n + latency_ms) / (n + 1)
"""

from __future__ import annotations

from threading import RLock
from typing import Optional

from ..base.models import TrialRecord
from .running_average import RunningAverage


class RunningAverageAccumulator:
    """Aggregate latency across completed trials.

    Only :meth:`record` mutates state; :meth:`current_average` is a pure read
    returning an immutable snapshot.
    """

    __slots__ = ("_lock", "_count", "_value", "_min", "_max", "_last")

    def __init__(self) -> None:
        self._lock = RLock()
        self._count = 0
        self._value = 0.0
        self._min: Optional[int] = None
        self._max: Optional[int] = None
        self._last: Optional[int] = None

    def record(self, trial: TrialRecord) -> RunningAverage:
        """Fold ``trial.latency_ms`` into the aggregate and return the new snapshot."""
        latency = trial.latency_ms
        with self._lock:
            self._value = (self._value * self._count + latency) / (self._count + 1)
            self._count += 1
            if self._min is None or latency < self._min:
                self._min = latency
            if self._max is None or latency > self._max:
                self._max = latency
            self._last = latency
            return self._snapshot()

    def current_average(self) -> RunningAverage:
        """Return the current aggregate without changing it."""
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> RunningAverage:
        return RunningAverage(
            completed_count=self._count,
            value=self._value,
            min_ms=self._min,
            max_ms=self._max,
            last_ms=self._last,
        )


__all__ = ["RunningAverageAccumulator"]
