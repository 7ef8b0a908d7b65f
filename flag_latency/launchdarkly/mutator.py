"""
Control-plane mutator for the flag under test.

Purpose
-------
Flip the flag's targeting state in one environment with a single semantic
patch request and return the server's authoritative state, including the
``lastModified`` timestamp the latency is measured against.

External dependencies
---------------------
- ``httpx`` through the shared pool (``get_httpx_client``); an explicit client
  may be injected (tests use ``httpx.MockTransport``).

Failure semantics
-----------------
Exactly one request per :meth:`ControlPlaneMutator.toggle` call, no retries.
Non-2xx statuses, transport failures and responses without the expected
environment all raise :class:`~flag_latency.base.errors.ApiError`.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Optional

import httpx

from ..base.errors import ApiError, classify_exception
from ..base.http import get_httpx_client
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import FlagState
from ..config.settings import DEFAULT_API_BASE_URL, ProbeSettings
from .helpers import (
    build_body,
    build_headers,
    build_params,
    error_from_response,
    flag_path,
    instruction_kind,
    parse_flag_state,
)


class ControlPlaneMutator:
    """Toggle a boolean flag through the LaunchDarkly REST API."""

    def __init__(
        self,
        *,
        api_token: str,
        project_key: str,
        environment_key: str,
        flag_key: str,
        base_url: str = DEFAULT_API_BASE_URL,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_token = api_token
        self._project_key = project_key
        self._environment_key = environment_key
        self._flag_key = flag_key
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._logger = get_logger("flag_latency.mutator")
        self._ctx = LogContext(project_key=project_key, environment_key=environment_key, flag_key=flag_key)
        self.last_round_trip_ms: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: ProbeSettings, client: Optional[httpx.Client] = None) -> "ControlPlaneMutator":
        return cls(
            api_token=settings.api_token,
            project_key=settings.project_key,
            environment_key=settings.environment_key,
            flag_key=settings.flag_key,
            base_url=settings.api_base_url,
            client=client,
        )

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = get_httpx_client(self._base_url, purpose="flags.patch")
        return self._client

    def toggle(self, current_value: bool) -> FlagState:
        """Request the opposite of ``current_value`` and return the new state.

        Raises:
            ApiError: On any failure; ``status`` is ``None`` for transport errors.
        """
        kind = instruction_kind(current_value)
        log_event(self._logger, "mutation.sent", self._ctx, message="Toggling flag in LD...", kind=kind)
        started = time.perf_counter()
        try:
            response = self._http().patch(
                f"{self._base_url}{flag_path(self._project_key, self._flag_key)}",
                params=build_params(self._environment_key),
                headers=build_headers(self._api_token),
                content=json.dumps(build_body(self._environment_key, kind)),
            )
        except httpx.HTTPError as exc:
            error = ApiError(code=classify_exception(exc), message=f"request failed: {exc}", raw=exc)
            self._log_failure(error)
            raise error from exc
        finally:
            self.last_round_trip_ms = (time.perf_counter() - started) * 1000
            log_event(
                self._logger,
                "mutation.round_trip",
                self._ctx,
                message=f"Toggling flag in LD took {self.last_round_trip_ms:.1f} ms",
                duration_ms=round(self.last_round_trip_ms, 3),
            )
        try:
            if not response.is_success:
                raise error_from_response(response)
            return parse_flag_state(response, self._environment_key)
        except ApiError as error:
            self._log_failure(error)
            raise

    def _log_failure(self, error: ApiError) -> None:
        log_event(
            self._logger,
            "mutation.failed",
            self._ctx,
            level=logging.WARNING,
            message=f"Toggling flag in LD failed: {error.message}",
            error_code=error.code.value,
            status=error.status,
        )


__all__ = ["ControlPlaneMutator"]
