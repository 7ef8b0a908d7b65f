"""Application bootstrap for the latency probe.

Purpose
-------
Wire validated :class:`ProbeSettings` to concrete collaborators and produce a
ready coordinator:

1. initialize the update client and wait (bounded) for it to become ready;
2. read the flag once to learn its current value;
3. build the mutator and the coordinator and attach it to the update client.

Steps 1 and 2 are timed and logged (``sdk.initialized``,
``flag.initial_read``). Any failure in them is an
:class:`~flag_latency.base.errors.InitializationError`, the only fatal error
of the probe.

Collaborator factories are injectable so the bootstrap can be exercised
without network access.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..base.errors import InitializationError, ProbeError
from ..base.http import close_all_clients
from ..base.interfaces import FlagMutator, Scheduler, TrialObserver, UpdateClient
from ..base.logging import LogContext, get_logger, log_event
from ..base.timeouts import get_timeout_config
from ..config.settings import ProbeSettings
from ..launchdarkly import ControlPlaneMutator, LaunchDarklyUpdateClient
from ..metrics import RunningAverageAccumulator
from .coordinator import LatencyTrialCoordinator

UpdateClientFactory = Callable[[ProbeSettings], UpdateClient]
MutatorFactory = Callable[[ProbeSettings], FlagMutator]


def _default_update_client(settings: ProbeSettings) -> UpdateClient:
    return LaunchDarklyUpdateClient(settings.sdk_key)


def _default_mutator(settings: ProbeSettings) -> FlagMutator:
    return ControlPlaneMutator.from_settings(settings)


class ProbeApp:
    """Own the collaborators and the coordinator for one probe process."""

    def __init__(
        self,
        settings: ProbeSettings,
        *,
        update_client_factory: Optional[UpdateClientFactory] = None,
        mutator_factory: Optional[MutatorFactory] = None,
        scheduler: Optional[Scheduler] = None,
        observer: Optional[TrialObserver] = None,
        init_timeout_seconds: Optional[float] = None,
        settle_delay_seconds: Optional[float] = None,
        max_wait_seconds: Optional[float] = None,
    ) -> None:
        self.settings = settings
        self._update_client_factory = update_client_factory or _default_update_client
        self._mutator_factory = mutator_factory or _default_mutator
        self._scheduler = scheduler
        self._observer = observer
        self._init_timeout = (
            get_timeout_config().init_timeout_seconds if init_timeout_seconds is None else init_timeout_seconds
        )
        self._settle_delay = settle_delay_seconds
        self._max_wait = max_wait_seconds
        self._logger = get_logger("flag_latency.app")
        self._ctx = LogContext(
            project_key=settings.project_key,
            environment_key=settings.environment_key,
            flag_key=settings.flag_key,
        )
        self.update_client: Optional[UpdateClient] = None
        self.coordinator: Optional[LatencyTrialCoordinator] = None

    def start(self) -> LatencyTrialCoordinator:
        """Initialize collaborators and return an attached, idle coordinator.

        Raises:
            InitializationError: If the SDK is not ready in time or the initial
                flag read fails.
        """
        if self.coordinator is not None:
            return self.coordinator
        client = self._update_client_factory(self.settings)
        self.update_client = client

        started = time.perf_counter()
        try:
            client.initialize()
            client.wait_for_initialization(self._init_timeout)
        except InitializationError:
            raise
        except Exception as exc:
            raise InitializationError(message=f"error initializing SDK: {exc}", raw=exc) from exc
        self._log_duration("sdk.initialized", "LaunchDarkly SDK Initialization", started)

        started = time.perf_counter()
        try:
            flag_value = client.read_variation(self.settings.flag_key, self.settings.context, False)
        except ProbeError as exc:
            raise InitializationError(message=f"initial flag read failed: {exc.message}", raw=exc) from exc
        except Exception as exc:
            raise InitializationError(message=f"initial flag read failed: {exc}", raw=exc) from exc
        self._log_duration("flag.initial_read", "Initial flag retrieval after SDK initialization", started)

        coordinator = LatencyTrialCoordinator(
            flag_key=self.settings.flag_key,
            mutator=self._mutator_factory(self.settings),
            update_client=client,
            accumulator=RunningAverageAccumulator(),
            scheduler=self._scheduler,
            settle_delay_seconds=self._settle_delay,
            max_wait_seconds=self._max_wait,
            initial_flag_value=flag_value,
            observer=self._observer,
            log_context=self._ctx,
        )
        coordinator.attach()
        self.coordinator = coordinator
        log_event(
            self._logger,
            "app.ready",
            self._ctx,
            message=f"Flag '{self.settings.flag_key}' is currently {'on' if flag_value else 'off'}",
            is_on=flag_value,
        )
        return coordinator

    def close(self) -> None:
        """Detach the coordinator and release the SDK client and HTTP pool."""
        if self.coordinator is not None:
            self.coordinator.detach()
        if self.update_client is not None:
            self.update_client.close()
        close_all_clients()
        log_event(self._logger, "app.closed", self._ctx, level=logging.DEBUG, message="Probe shut down")

    def _log_duration(self, event: str, label: str, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        log_event(
            self._logger,
            event,
            self._ctx,
            message=f"{label} took {duration_ms:.1f} ms",
            duration_ms=round(duration_ms, 3),
        )

    def __enter__(self) -> "ProbeApp":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["ProbeApp"]
