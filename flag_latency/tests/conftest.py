"""Pytest configuration for the probe test suite.

Every test runs with a clean configuration environment: no ``LD_*`` or
``FLAG_LATENCY_*`` variables, no ``.env`` file and no pooled HTTP clients
left over from a previous test.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Iterator

import pytest

from flag_latency.base.http import close_all_clients
from flag_latency.base.logging import BASE_LOGGER_NAME, get_logger
from flag_latency.config.env import reset_dotenv_state
from flag_latency.service.coordinator import LatencyTrialCoordinator

from .helpers import (
    FLAG_KEY,
    MAX_WAIT,
    SETTLE,
    FakeClock,
    FakeMutator,
    FakeUpdateClient,
    ManualScheduler,
    RecordingObserver,
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith(("LD_", "FLAG_LATENCY_")):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    reset_dotenv_state()
    yield
    reset_dotenv_state()
    close_all_clients()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture()
def update_client() -> FakeUpdateClient:
    return FakeUpdateClient()


@pytest.fixture()
def make_coordinator(clock, scheduler, observer, update_client):
    """Build an attached coordinator around a scripted mutator."""

    def _make(*outcomes, initial_flag_value: bool = False) -> tuple[LatencyTrialCoordinator, FakeMutator]:
        mutator = FakeMutator(*outcomes)
        coordinator = LatencyTrialCoordinator(
            flag_key=FLAG_KEY,
            mutator=mutator,
            update_client=update_client,
            scheduler=scheduler,
            clock=clock,
            settle_delay_seconds=SETTLE,
            max_wait_seconds=MAX_WAIT,
            initial_flag_value=initial_flag_value,
            observer=observer,
        )
        coordinator.attach()
        return coordinator, mutator

    return _make


class _Capture(list):
    """Records collected from the probe's base logger."""

    def payloads(self):
        out = []
        for record in self:
            try:
                parsed = json.loads(record.getMessage())
            except ValueError:
                continue
            if isinstance(parsed, dict):
                out.append(parsed)
        return out


@pytest.fixture()
def log_capture(isolated_environment) -> Iterator[_Capture]:
    """Capture every event emitted under the ``flag_latency`` logger at DEBUG."""
    base = get_logger(BASE_LOGGER_NAME)
    base.setLevel(logging.DEBUG)
    records = _Capture()
    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = records.append  # type: ignore[method-assign]
    base.addHandler(handler)
    try:
        yield records
    finally:
        base.removeHandler(handler)
        base.setLevel(logging.INFO)
