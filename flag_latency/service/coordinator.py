"""Latency trial coordinator.

Purpose
-------
Run one flag-propagation trial at a time: flip the flag through the control
plane, wait for the streaming client to observe the change, let the
measurement settle, then fold the latency into the running average.

State machine
-------------
``IDLE -> TOGGLING -> AWAITING_UPDATE -> SETTLING -> IDLE``. ``TOGGLING``,
``AWAITING_UPDATE`` and ``SETTLING`` can also abort back to ``IDLE`` (mutation
failure, stream error, correlation timeout). A stream error during
``TOGGLING`` is held until the mutation returns. The coordinator never reaches a
terminal state; it can run trials for the whole process lifetime.

Concurrency
-----------
Events arrive from several threads: the caller of :meth:`start`, SDK listener
threads (notifications, stream errors) and timer threads (bounded wait,
settle delay). Every transition runs under one re-entrant lock and checks the
current state first, so events that do not belong to the current trial are
dropped rather than queued. Timer callbacks carry the index of the trial that
armed them and are ignored once that trial is over.

Observers and log output are invoked after the lock is released.

Failure semantics
-----------------
Trial-scoped failures (:class:`ApiError`, :class:`StreamError`,
:class:`CorrelationTimeoutError`) never escape :meth:`start` or any event
handler. They are logged, reported to the observer, and the coordinator
returns to ``IDLE``. A failed attempt still consumes its trial number.
Exceptions raised by observer hooks are logged as ``observer.failed`` and
do not affect the trial.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from ..base.errors import (
    ApiError,
    CorrelationTimeoutError,
    ProbeError,
    StreamError,
    classify_exception,
)
from ..base.interfaces import FlagMutator, Scheduler, TrialObserver, UpdateClient
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import FlagState, TrialRecord, TrialSession, TrialState
from ..base.scheduling import Handle, ThreadingScheduler
from ..base.timeouts import get_timeout_config
from ..metrics import RunningAverage, RunningAverageAccumulator

Clock = Callable[[], int]
MutationResult = Union[FlagState, ProbeError]


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _utc(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds")


class LatencyTrialCoordinator:
    """Serialize trials and correlate mutations with update notifications.

    Parameters
    ----------
    flag_key:
        The flag under test; notifications for any other key are ignored.
    mutator:
        Control-plane collaborator flipping the flag.
    update_client:
        Streaming collaborator; :meth:`attach` subscribes to it. Optional so
        events can be fed directly in tests.
    accumulator:
        Running average sink; a fresh one is created when omitted.
    scheduler:
        Arms the bounded wait and the settle delay.
    clock:
        Epoch-millisecond clock used for ``toggle_sent_at`` and receipt stamps.
    settle_delay_seconds / max_wait_seconds:
        Default to :func:`get_timeout_config` values.
    initial_flag_value:
        Flag value read at start-up; decides the first toggle direction.
    observer:
        Optional presentation hooks.
    log_context:
        Base context for structured log lines.
    """

    def __init__(
        self,
        *,
        flag_key: str,
        mutator: FlagMutator,
        update_client: Optional[UpdateClient] = None,
        accumulator: Optional[RunningAverageAccumulator] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
        settle_delay_seconds: Optional[float] = None,
        max_wait_seconds: Optional[float] = None,
        initial_flag_value: bool = False,
        observer: Optional[TrialObserver] = None,
        log_context: Optional[LogContext] = None,
    ) -> None:
        cfg = get_timeout_config()
        self._flag_key = flag_key
        self._mutator = mutator
        self._update_client = update_client
        self._accumulator = accumulator or RunningAverageAccumulator()
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._clock: Clock = clock or wall_clock_ms
        self._settle_delay = cfg.settle_delay_seconds if settle_delay_seconds is None else settle_delay_seconds
        self._max_wait = cfg.max_wait_seconds if max_wait_seconds is None else max_wait_seconds
        self._observer = observer
        self._ctx = log_context or LogContext(flag_key=flag_key)
        self._logger = get_logger("flag_latency.coordinator")

        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._session = TrialSession(current_flag_value=initial_flag_value)
        self._wait_handle: Optional[Handle] = None
        self._settle_handle: Optional[Handle] = None
        self._subscriptions: List[Handle] = []
        self._last_record: Optional[TrialRecord] = None
        # Index of the trial whose mutation request has not returned yet.
        self._mutation_in_flight: Optional[int] = None
        # Newest trial whose mutation result updated current_flag_value.
        self._applied_index = 0

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    @property
    def flag_key(self) -> str:
        return self._flag_key

    @property
    def state(self) -> TrialState:
        with self._lock:
            return self._session.state

    @property
    def current_index(self) -> int:
        with self._lock:
            return self._session.current_index

    @property
    def current_flag_value(self) -> bool:
        with self._lock:
            return self._session.current_flag_value

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy_locked()

    @property
    def last_record(self) -> Optional[TrialRecord]:
        with self._lock:
            return self._last_record

    def running_average(self) -> RunningAverage:
        return self._accumulator.current_average()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no trial is in flight; False if ``timeout`` elapsed first."""
        return self._idle.wait(timeout)

    # ------------------------------------------------------------------ #
    # Wiring
    # ------------------------------------------------------------------ #
    def attach(self) -> None:
        """Subscribe to the update client's notification and error channels."""
        if self._update_client is None:
            raise RuntimeError("no update client to attach to")
        with self._lock:
            if self._subscriptions:
                return
            self._subscriptions = [
                self._update_client.subscribe(self._flag_key, self._handle_update),
                self._update_client.on_error(self.on_stream_error),
            ]

    def detach(self) -> None:
        """Drop subscriptions and pending timers; an in-flight trial is abandoned."""
        with self._lock:
            subscriptions, self._subscriptions = self._subscriptions, []
            self._finish_locked()
            self._set_idle_if_ready_locked()
        for handle in subscriptions:
            handle.cancel()

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def start(self) -> bool:
        """Begin a trial unless one is already running.

        Returns ``False`` (and does nothing else) when the coordinator is
        busy, including while an aborted trial's mutation request is still
        outstanding. Otherwise runs the mutation synchronously and returns
        ``True``; the rest of the trial proceeds on notification and timer
        events.
        """
        with self._lock:
            if self._busy_locked():
                busy_reason = self._session.state.value if self._session.busy else "mutation in flight"
                index = self._session.current_index
            else:
                busy_reason = None
                self._session.current_index += 1
                index = self._session.current_index
                self._session.state = TrialState.TOGGLING
                current_value = self._session.current_flag_value
                self._mutation_in_flight = index
                self._idle.clear()
        if busy_reason is not None:
            log_event(
                self._logger,
                "trial.busy",
                self._ctx.for_trial(index),
                level=logging.DEBUG,
                message=f"Test run #{index} still in progress ({busy_reason})",
            )
            return False

        log_event(self._logger, "trial.start", self._ctx.for_trial(index), message=f"Executing test run #{index}")
        started = time.perf_counter()
        result: MutationResult
        try:
            try:
                result = self._mutator.toggle(current_value)
            except ProbeError as exc:
                result = exc
            except Exception as exc:  # noqa: BLE001 - any mutator failure fails the trial, not the process
                result = ApiError(code=classify_exception(exc), message=str(exc) or type(exc).__name__, raw=exc)
            round_trip_ms = (time.perf_counter() - started) * 1000
            self.on_mutation_result(result, trial_index=index, round_trip_ms=round_trip_ms)
        finally:
            with self._lock:
                if self._mutation_in_flight == index:
                    self._mutation_in_flight = None
                    self._set_idle_if_ready_locked()
        return True

    request_trial = start

    def on_mutation_result(
        self,
        result: MutationResult,
        *,
        trial_index: Optional[int] = None,
        round_trip_ms: Optional[float] = None,
    ) -> None:
        """Accept the mutator outcome for the current trial.

        A successful result stamps ``toggle_sent_at``, stores the server
        timestamp and arms the bounded wait. A failure aborts the trial with
        :class:`ApiError`. A result arriving after its trial was aborted
        still updates the known flag value unless a newer result already did.
        """
        failure: Optional[ProbeError] = None
        with self._lock:
            session = self._session
            index = session.current_index if trial_index is None else trial_index
            if self._mutation_in_flight == index:
                self._mutation_in_flight = None
            if isinstance(result, FlagState) and index >= self._applied_index:
                session.current_flag_value = result.is_on
                self._applied_index = index
            if session.state is not TrialState.TOGGLING or index != session.current_index:
                self._set_idle_if_ready_locked()
                return
            if session.abort_error is not None:
                failure = session.abort_error
                self._finish_locked()
            elif isinstance(result, FlagState):
                session.toggle_sent_at_ms = self._clock()
                session.pending_flag_state = result
                session.mutation_round_trip_ms = round_trip_ms
                session.state = TrialState.AWAITING_UPDATE
                self._wait_handle = self._scheduler.call_later(
                    self._max_wait, lambda: self.on_wait_timeout(index), label=f"wait-{index}"
                )
            else:
                failure = result if isinstance(result, ApiError) else ApiError(
                    code=result.code, message=result.message, raw=result
                )
                self._finish_locked()

        if failure is not None:
            self._report_failure(index, failure)
            return
        log_event(
            self._logger,
            "trial.awaiting_update",
            self._ctx.for_trial(index),
            message=f"Flag is now {'on' if result.is_on else 'off'}; waiting for update",
            is_on=result.is_on,
            last_modified=_iso(result.last_modified_at),
            mutation_round_trip_ms=round(round_trip_ms, 3) if round_trip_ms is not None else None,
        )

    def _handle_update(self, flag_key: str) -> None:
        # Receipt is stamped before waiting on the lock.
        self.on_update_notification(flag_key, self._clock())

    def on_update_notification(self, flag_key: str, received_at_ms: int) -> bool:
        """Correlate a change notification with the in-flight trial.

        Returns ``True`` when the notification moved the trial to
        ``SETTLING``; notifications for other flags, or arriving outside
        ``AWAITING_UPDATE``, are ignored.
        """
        with self._lock:
            session = self._session
            if session.state is not TrialState.AWAITING_UPDATE or flag_key != self._flag_key:
                state = session.state
                index = session.current_index
                matched = False
            else:
                matched = True
                index = session.current_index
                session.client_received_at_ms = received_at_ms
                session.notified_flag_key = flag_key
                session.state = TrialState.SETTLING
                self._cancel_wait_locked()
                self._settle_handle = self._scheduler.call_later(
                    self._settle_delay, lambda: self.on_settle_elapsed(index), label=f"settle-{index}"
                )
        if not matched:
            log_event(
                self._logger,
                "trial.notification_ignored",
                self._ctx.for_trial(index),
                level=logging.DEBUG,
                message=f"Ignoring update for '{flag_key}' while {state.value}",
                notified_flag_key=flag_key,
            )
            return False
        log_event(
            self._logger,
            "trial.notification",
            self._ctx.for_trial(index),
            message=f"Flag update received by client at {_iso(_utc(received_at_ms))}",
        )
        return True

    def on_settle_elapsed(self, trial_index: Optional[int] = None) -> Optional[TrialRecord]:
        """Finalize the settled trial and fold it into the running average."""
        with self._lock:
            session = self._session
            index = session.current_index if trial_index is None else trial_index
            if session.state is not TrialState.SETTLING or index != session.current_index:
                return None
            pending = session.pending_flag_state
            assert pending is not None and session.toggle_sent_at_ms is not None  # nosec B101 - set on AWAITING_UPDATE
            assert session.client_received_at_ms is not None  # nosec B101 - set on SETTLING
            record = TrialRecord.from_notification(
                index=index,
                expected_flag_key=self._flag_key,
                notified_flag_key=session.notified_flag_key or "",
                toggle_sent_at_ms=session.toggle_sent_at_ms,
                server_last_modified_ms=pending.last_modified_ms,
                client_received_at_ms=session.client_received_at_ms,
                mutation_round_trip_ms=session.mutation_round_trip_ms,
            )
            average = self._accumulator.record(record)
            self._last_record = record
            self._settle_handle = None
            self._finish_locked()

        ctx = self._ctx.for_trial(index)
        log_event(
            self._logger,
            "trial.server_timestamp",
            ctx,
            message=f"Flag last updated in LD at {_iso(pending.last_modified_at)}",
        )
        log_event(
            self._logger,
            "trial.completed",
            ctx,
            message=f"Time to deliver flag change to client: {record.latency_ms} ms",
            latency_ms=record.latency_ms,
        )
        log_event(
            self._logger,
            "trial.average",
            ctx,
            message=f"Average flag delivery time: {average.value:.1f} ms",
            average_ms=round(average.value, 3),
            completed=average.completed_count,
            min_ms=average.min_ms,
            max_ms=average.max_ms,
        )
        self._notify_observer("on_trial_completed", record, average)
        self._signal_ready()
        return record

    def on_stream_error(self, err: Union[StreamError, BaseException, str]) -> bool:
        """Abort the in-flight trial (if any) because the stream failed.

        While the trial is ``TOGGLING`` the abort is recorded and completed
        by :meth:`on_mutation_result`, so the flag value the server returns
        is not lost. Returns ``True`` when a trial was (or will be) aborted.
        """
        error = err if isinstance(err, StreamError) else StreamError(
            message=str(err), raw=err if isinstance(err, Exception) else None
        )
        toggling = deferred = False
        with self._lock:
            session = self._session
            index = session.current_index if session.busy else None
            if session.state is TrialState.TOGGLING:
                # Finished when the outstanding mutation returns.
                toggling = True
                deferred = session.abort_error is None
                if deferred:
                    session.abort_error = error
            elif index is not None:
                self._finish_locked()
        if deferred:
            log_event(
                self._logger,
                "trial.abort_pending",
                self._ctx.for_trial(index),
                level=logging.WARNING,
                message=f"Stream error during test run #{index}; aborting once the toggle returns: {error.message}",
            )
            return True
        if toggling:
            return True
        if index is None:
            log_event(
                self._logger,
                "stream.error_idle",
                self._ctx,
                level=logging.WARNING,
                message=f"Stream error while idle: {error.message}",
            )
            return False
        self._report_failure(index, error)
        return True

    def on_wait_timeout(self, trial_index: Optional[int] = None) -> bool:
        """Abort the trial if it is still waiting for its notification."""
        with self._lock:
            session = self._session
            index = session.current_index if trial_index is None else trial_index
            if session.state is not TrialState.AWAITING_UPDATE or index != session.current_index:
                return False
            self._wait_handle = None
            self._finish_locked()
        error = CorrelationTimeoutError(
            message=f"no update for '{self._flag_key}' within {self._max_wait:g}s",
            waited_seconds=self._max_wait,
        )
        self._report_failure(index, error)
        return True

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _cancel_wait_locked(self) -> None:
        handle, self._wait_handle = self._wait_handle, None
        if handle is not None:
            handle.cancel()

    def _cancel_timers(self) -> None:
        self._cancel_wait_locked()
        handle, self._settle_handle = self._settle_handle, None
        if handle is not None:
            handle.cancel()

    def _busy_locked(self) -> bool:
        return self._session.busy or self._mutation_in_flight is not None

    def _set_idle_if_ready_locked(self) -> None:
        if not self._busy_locked():
            self._idle.set()

    def _finish_locked(self) -> None:
        """Return to ``IDLE``; caller holds the lock."""
        self._cancel_timers()
        self._session.reset_trial()

    def _notify_observer(self, hook: str, *args: object) -> None:
        if self._observer is None:
            return
        try:
            getattr(self._observer, hook)(*args)
        except Exception as exc:  # noqa: BLE001 - observer failures are logged, trials carry on
            log_event(
                self._logger,
                "observer.failed",
                self._ctx,
                level=logging.ERROR,
                message=f"Observer {hook} failed: {exc!r}",
                hook=hook,
            )

    def _report_failure(self, index: int, error: ProbeError) -> None:
        fields = {"error_code": error.code.value}
        if isinstance(error, ApiError):
            fields["status"] = error.status
        log_event(
            self._logger,
            "trial.aborted",
            self._ctx.for_trial(index),
            level=logging.ERROR,
            message=f"Error running test #{index}: {error}",
            **fields,
        )
        self._notify_observer("on_trial_failed", index, error)
        self._signal_ready()

    def _signal_ready(self) -> None:
        try:
            log_event(self._logger, "trial.ready", self._ctx, level=logging.DEBUG, message="Ready to run test")
            self._notify_observer("on_ready")
        finally:
            # Waiters wake only after observers saw the outcome.
            with self._lock:
                self._set_idle_if_ready_locked()


__all__ = ["LatencyTrialCoordinator", "wall_clock_ms"]
