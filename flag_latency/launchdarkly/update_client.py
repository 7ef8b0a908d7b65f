"""
Streaming update client backed by the LaunchDarkly server-side SDK.

Purpose
-------
Adapt ``ldclient.LDClient`` to the :class:`~flag_latency.base.interfaces.UpdateClient`
contract the coordinator consumes:

- readiness is tracked through the data source status provider, so start-up
  can be bounded without relying on the SDK's blocking constructor;
- flag-change notifications come from the SDK's flag tracker and are reduced
  to the changed key;
- ``INTERRUPTED`` / ``OFF`` data source states are reported as
  :class:`~flag_latency.base.errors.StreamError`.

Threading
---------
The SDK invokes listeners on its own worker threads. Handlers registered here
are called on those threads; the coordinator serializes them itself.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Mapping, Optional

from ldclient import Context
from ldclient.client import LDClient
from ldclient.config import Config
from ldclient.interfaces import DataSourceState, DataSourceStatus, FlagChange

from ..base.errors import InitializationError, StreamError
from ..base.logging import get_logger, log_event
from ..base.scheduling import Handle

ClientFactory = Callable[[Config], Any]


def _default_factory(config: Config) -> LDClient:
    # start_wait=0: readiness is awaited through wait_for_initialization
    return LDClient(config=config, start_wait=0)


def _describe_status(status: DataSourceStatus) -> str:
    error = status.error
    if error is None:
        return f"data source {status.state.value}"
    parts = [f"data source {status.state.value}", str(getattr(error.kind, "value", error.kind))]
    if error.status_code:
        parts.append(f"status {error.status_code}")
    if error.message:
        parts.append(error.message)
    return ": ".join(parts)


class LaunchDarklyUpdateClient:
    """Flag evaluation and change notifications over the SDK's streaming connection."""

    def __init__(self, sdk_key: str, *, client_factory: Optional[ClientFactory] = None) -> None:
        self._sdk_key = sdk_key
        self._factory = client_factory or _default_factory
        self._client: Any = None
        self._settled = threading.Event()
        self._failure: Optional[str] = None
        self._error_handlers: List[Callable[[StreamError], None]] = []
        self._handlers_lock = threading.Lock()
        self._logger = get_logger("flag_latency.update_client")

    def initialize(self) -> None:
        """Create the SDK client and start tracking its data source status."""
        if self._client is not None:
            return
        self._client = self._factory(Config(sdk_key=self._sdk_key))
        provider = self._client.data_source_status_provider
        provider.add_listener(self._on_status)
        # The status may have settled before the listener was registered.
        self._on_status(provider.status)
        if self._client.is_initialized():
            self._settled.set()

    def wait_for_initialization(self, timeout: float) -> None:
        """Block until the SDK is ready.

        Raises:
            InitializationError: If the SDK reports a permanent failure or is
                not ready within ``timeout`` seconds.
        """
        if self._client is None:
            raise InitializationError(message="update client was never initialized")
        self._settled.wait(timeout)
        if self._client.is_initialized():
            return
        if self._failure:
            raise InitializationError(message=f"SDK failed to initialize: {self._failure}")
        raise InitializationError(message=f"SDK did not initialize within {timeout:g}s")

    def read_variation(self, flag_key: str, context: Mapping[str, Any], default: bool) -> bool:
        """Evaluate a boolean flag.

        Raises:
            ValueError: If the context is invalid, the evaluation reports an
                error, or the flag is not boolean.
        """
        ld_context = Context.from_dict(dict(context))
        if not ld_context.valid:
            raise ValueError(f"invalid evaluation context: {ld_context.error}")
        detail = self._require_client().variation_detail(flag_key, ld_context, default)
        reason = detail.reason or {}
        if reason.get("kind") == "ERROR":
            raise ValueError(f"evaluation of '{flag_key}' failed: {reason.get('errorKind', 'unknown error')}")
        if not isinstance(detail.value, bool):
            raise ValueError(f"flag '{flag_key}' is not boolean (got {detail.value!r})")
        return detail.value

    def subscribe(self, flag_key: str, handler: Callable[[str], None]) -> Handle:
        """Call ``handler(flag_key)`` for every change of ``flag_key``."""
        tracker = self._require_client().flag_tracker

        def _listener(change: FlagChange) -> None:
            if change.key == flag_key:
                handler(change.key)

        tracker.add_listener(_listener)
        return Handle(lambda: tracker.remove_listener(_listener), label=f"update:{flag_key}")

    def on_error(self, handler: Callable[[StreamError], None]) -> Handle:
        """Call ``handler`` whenever the data source is interrupted or turned off."""
        with self._handlers_lock:
            self._error_handlers.append(handler)

        def _remove() -> None:
            with self._handlers_lock:
                if handler in self._error_handlers:
                    self._error_handlers.remove(handler)

        return Handle(_remove, label="error")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _require_client(self) -> Any:
        if self._client is None:
            raise InitializationError(message="update client was never initialized")
        return self._client

    def _on_status(self, status: DataSourceStatus) -> None:
        state = status.state
        if state == DataSourceState.VALID:
            self._settled.set()
            return
        if state not in (DataSourceState.INTERRUPTED, DataSourceState.OFF):
            return
        description = _describe_status(status)
        if state == DataSourceState.OFF and not self._settled.is_set():
            # OFF before ever becoming valid is permanent (e.g. bad SDK key)
            self._failure = description
            self._settled.set()
        log_event(
            self._logger,
            "stream.error",
            None,
            level=logging.ERROR,
            message=f"LDClient error: {description}",
            state=state.value,
        )
        with self._handlers_lock:
            handlers = list(self._error_handlers)
        for handler in handlers:
            handler(StreamError(message=description))


__all__ = ["LaunchDarklyUpdateClient"]
