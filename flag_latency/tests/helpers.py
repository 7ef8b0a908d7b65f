"""In-memory collaborators for coordinator and app tests.

None of these touch the network or spawn threads; time only moves when a test
calls :meth:`ManualScheduler.advance` or :meth:`FakeClock.advance`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from flag_latency.base.errors import InitializationError, ProbeError, StreamError
from flag_latency.base.models import FlagState, TrialRecord
from flag_latency.base.scheduling import Handle
from flag_latency.metrics import RunningAverage

FLAG_KEY = "latency-probe"
SETTLE = 3.0
MAX_WAIT = 30.0


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@dataclass
class _Scheduled:
    due: float
    callback: Callable[[], None]
    handle: Handle
    label: str


class ManualScheduler:
    """Scheduler whose timers fire only on :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._items: List[_Scheduled] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None], *, label: str = "") -> Handle:
        handle = Handle(label=label)
        self._items.append(_Scheduled(self.now + delay_seconds, callback, handle, label))
        return handle

    def pending(self) -> List[str]:
        return [i.label for i in self._items if not i.handle.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [i for i in self._items if i.due <= self.now]
        self._items = [i for i in self._items if i.due > self.now]
        for item in sorted(due, key=lambda i: i.due):
            if not item.handle.cancelled:
                item.callback()


MutatorOutcome = Union[FlagState, Exception]


class FakeMutator:
    """Returns scripted outcomes and records every requested direction."""

    def __init__(self, *outcomes: MutatorOutcome) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[bool] = []
        self.on_call: Optional[Callable[[], None]] = None

    def toggle(self, current_value: bool) -> FlagState:
        self.calls.append(current_value)
        if self.on_call is not None:
            self.on_call()
        outcome = self._outcomes.pop(0) if self._outcomes else FlagState(not current_value, 0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeUpdateClient:
    """Update client exposing its registered handlers for direct triggering."""

    def __init__(self, *, flag_value: bool = False, ready: bool = True, read_error: Optional[Exception] = None) -> None:
        self.flag_value = flag_value
        self.ready = ready
        self.read_error = read_error
        self.initialized = False
        self.closed = False
        self.update_handlers: Dict[str, List[Callable[[str], None]]] = {}
        self.error_handlers: List[Callable[[StreamError], None]] = []
        self.reads: List[Tuple[str, Mapping[str, Any], bool]] = []

    def initialize(self) -> None:
        self.initialized = True

    def wait_for_initialization(self, timeout: float) -> None:
        if not self.ready:
            raise InitializationError(message=f"not ready after {timeout}s")

    def read_variation(self, flag_key: str, context: Mapping[str, Any], default: bool) -> bool:
        self.reads.append((flag_key, context, default))
        if self.read_error is not None:
            raise self.read_error
        return self.flag_value

    def subscribe(self, flag_key: str, handler: Callable[[str], None]) -> Handle:
        self.update_handlers.setdefault(flag_key, []).append(handler)
        return Handle(lambda: self.update_handlers[flag_key].remove(handler), label=f"update:{flag_key}")

    def on_error(self, handler: Callable[[StreamError], None]) -> Handle:
        self.error_handlers.append(handler)
        return Handle(lambda: self.error_handlers.remove(handler), label="error")

    def close(self) -> None:
        self.closed = True

    # test drivers
    def notify(self, flag_key: str) -> None:
        for handler in list(self.update_handlers.get(flag_key, [])):
            handler(flag_key)

    def fail(self, message: str = "connection reset") -> None:
        for handler in list(self.error_handlers):
            handler(StreamError(message=message))


@dataclass
class RecordingObserver:
    """Collects observer callbacks in order."""

    events: List[str] = field(default_factory=list)
    records: List[TrialRecord] = field(default_factory=list)
    averages: List[RunningAverage] = field(default_factory=list)
    failures: List[Tuple[int, ProbeError]] = field(default_factory=list)

    def on_ready(self) -> None:
        self.events.append("ready")

    def on_trial_completed(self, record: TrialRecord, average: RunningAverage) -> None:
        self.events.append("completed")
        self.records.append(record)
        self.averages.append(average)

    def on_trial_failed(self, index: int, error: ProbeError) -> None:
        self.events.append("failed")
        self.failures.append((index, error))
