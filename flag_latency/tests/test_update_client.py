"""LaunchDarkly update client adapter against a scripted SDK double."""
from __future__ import annotations

import time
from typing import Any, Callable, List

import pytest
from ldclient.evaluation import EvaluationDetail
from ldclient.interfaces import (
    DataSourceErrorInfo,
    DataSourceErrorKind,
    DataSourceState,
    DataSourceStatus,
    FlagChange,
)

from flag_latency.base.errors import InitializationError, StreamError
from flag_latency.launchdarkly import LaunchDarklyUpdateClient

USER = {"kind": "user", "key": "probe-user"}


def _status(state: DataSourceState, *, message: str = "", status_code: int = 0) -> DataSourceStatus:
    error = None
    if message or status_code:
        error = DataSourceErrorInfo(DataSourceErrorKind.ERROR_RESPONSE, status_code, time.time(), message)
    return DataSourceStatus(state, time.time(), error)


class _StatusProvider:
    def __init__(self, status: DataSourceStatus) -> None:
        self.status = status
        self.listeners: List[Callable[[DataSourceStatus], None]] = []

    def add_listener(self, listener: Callable[[DataSourceStatus], None]) -> None:
        self.listeners.append(listener)

    def push(self, status: DataSourceStatus) -> None:
        self.status = status
        for listener in list(self.listeners):
            listener(status)


class _Tracker:
    def __init__(self) -> None:
        self.listeners: List[Callable[[FlagChange], None]] = []

    def add_listener(self, listener: Callable[[FlagChange], None]) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: Callable[[FlagChange], None]) -> None:
        self.listeners.remove(listener)

    def change(self, key: str) -> None:
        for listener in list(self.listeners):
            listener(FlagChange(key))


class FakeSdk:
    def __init__(self, state: DataSourceState = DataSourceState.INITIALIZING, detail: Any = None) -> None:
        self.data_source_status_provider = _StatusProvider(_status(state))
        self.flag_tracker = _Tracker()
        self.detail = detail or EvaluationDetail(True, 0, {"kind": "FALLTHROUGH"})
        self.evaluations: List[Any] = []
        self.closed = False
        self.config = None

    def is_initialized(self) -> bool:
        return self.data_source_status_provider.status.state == DataSourceState.VALID

    def variation_detail(self, key, context, default):
        self.evaluations.append((key, context, default))
        return self.detail

    def close(self) -> None:
        self.closed = True


def _client(sdk: FakeSdk) -> LaunchDarklyUpdateClient:
    def factory(config):
        sdk.config = config
        return sdk

    return LaunchDarklyUpdateClient("sdk-123", client_factory=factory)


def test_initialize_passes_sdk_key_and_becomes_ready():
    sdk = FakeSdk()
    client = _client(sdk)
    client.initialize()

    assert sdk.config.sdk_key == "sdk-123"  # nosec B101
    sdk.data_source_status_provider.push(_status(DataSourceState.VALID))
    client.wait_for_initialization(0.1)
    assert client.read_variation("latency-flag", USER, False) is True  # nosec B101
    assert len(sdk.evaluations) == 1  # nosec B101


def test_already_valid_status_is_ready_immediately():
    client = _client(FakeSdk(DataSourceState.VALID))
    client.initialize()
    client.wait_for_initialization(0)


def test_wait_times_out_when_never_ready():
    client = _client(FakeSdk())
    client.initialize()

    with pytest.raises(InitializationError, match="did not initialize"):
        client.wait_for_initialization(0.01)


def test_permanent_failure_is_reported_without_waiting():
    sdk = FakeSdk()
    client = _client(sdk)
    client.initialize()
    sdk.data_source_status_provider.push(_status(DataSourceState.OFF, message="invalid SDK key", status_code=401))

    started = time.monotonic()
    with pytest.raises(InitializationError) as info:
        client.wait_for_initialization(5.0)

    assert time.monotonic() - started < 1.0  # nosec B101
    assert "invalid SDK key" in info.value.message  # nosec B101
    assert "401" in info.value.message  # nosec B101


def test_wait_before_initialize_fails():
    with pytest.raises(InitializationError):
        _client(FakeSdk()).wait_for_initialization(0)


def test_read_variation_returns_boolean():
    sdk = FakeSdk(DataSourceState.VALID)
    client = _client(sdk)
    client.initialize()

    assert client.read_variation("probe-flag", USER, False) is True  # nosec B101
    key, context, default = sdk.evaluations[0]
    assert (key, context.key, context.kind, default) == ("probe-flag", "probe-user", "user", False)  # nosec B101


@pytest.mark.parametrize(
    "detail,context",
    [
        (EvaluationDetail(False, None, {"kind": "ERROR", "errorKind": "FLAG_NOT_FOUND"}), USER),
        (EvaluationDetail("on", 0, {"kind": "FALLTHROUGH"}), USER),
        (None, {"kind": "user"}),
    ],
)
def test_read_variation_rejects_bad_results(detail, context):
    client = _client(FakeSdk(DataSourceState.VALID, detail=detail))
    client.initialize()

    with pytest.raises(ValueError):
        client.read_variation("probe-flag", context, False)


def test_subscribe_filters_by_key_and_unsubscribes():
    sdk = FakeSdk(DataSourceState.VALID)
    client = _client(sdk)
    client.initialize()
    seen: List[str] = []

    handle = client.subscribe("probe-flag", seen.append)
    sdk.flag_tracker.change("other-flag")
    sdk.flag_tracker.change("probe-flag")
    handle.cancel()
    sdk.flag_tracker.change("probe-flag")

    assert seen == ["probe-flag"]  # nosec B101
    assert sdk.flag_tracker.listeners == []  # nosec B101


def test_interrupted_stream_reports_stream_error(log_capture):
    sdk = FakeSdk(DataSourceState.VALID)
    client = _client(sdk)
    client.initialize()
    errors: List[StreamError] = []
    handle = client.on_error(errors.append)

    sdk.data_source_status_provider.push(_status(DataSourceState.INTERRUPTED, message="connection reset"))
    handle.cancel()
    sdk.data_source_status_provider.push(_status(DataSourceState.INTERRUPTED, message="again"))

    assert len(errors) == 1  # nosec B101
    assert "connection reset" in errors[0].message  # nosec B101
    logged = [p for p in log_capture.payloads() if p["event"] == "stream.error"]
    assert logged[0]["message"].startswith("LDClient error:")  # nosec B101
    assert logged[0]["state"] == "interrupted"  # nosec B101


def test_recovery_status_does_not_report_errors():
    sdk = FakeSdk(DataSourceState.VALID)
    client = _client(sdk)
    client.initialize()
    errors: List[StreamError] = []
    client.on_error(errors.append)

    sdk.data_source_status_provider.push(_status(DataSourceState.VALID))

    assert errors == []  # nosec B101


def test_close_releases_sdk():
    sdk = FakeSdk(DataSourceState.VALID)
    client = _client(sdk)
    client.initialize()
    client.close()
    client.close()

    assert sdk.closed  # nosec B101
    with pytest.raises(InitializationError):
        client.read_variation("latency-flag", USER, False)
