"""
Request/response helpers for the LaunchDarkly REST control plane.

Kept free of I/O so the semantic-patch payload and the response parsing can be
tested without a client.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import httpx

from ..base.errors import ApiError, ErrorCode, code_for_status
from ..base.models import FlagState

SEMANTIC_PATCH_CONTENT_TYPE = "application/json; domain-model=launchdarkly.semanticpatch"
TURN_ON = "turnFlagOn"
TURN_OFF = "turnFlagOff"


def instruction_kind(current_value: bool) -> str:
    """Return the instruction that inverts ``current_value``."""
    return TURN_OFF if current_value else TURN_ON


def flag_path(project_key: str, flag_key: str) -> str:
    return f"/api/v2/flags/{project_key}/{flag_key}"


def build_params(environment_key: str) -> Dict[str, str]:
    # ignoreConflicts forces the toggle through concurrent edits
    return {"ignoreConflicts": "true", "filterEnv": environment_key}


def build_headers(api_token: str) -> Dict[str, str]:
    return {"Content-Type": SEMANTIC_PATCH_CONTENT_TYPE, "Authorization": api_token}


def build_body(environment_key: str, kind: str) -> Dict[str, Any]:
    return {"environmentKey": environment_key, "instructions": [{"kind": kind}]}


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Extract the ``message`` field of an API error body, if present."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(data, dict):
        msg = data.get("message")
        return str(msg) if msg else None
    return None


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an :class:`ApiError` for a non-success response."""
    message = f"{response.status_code} {response.reason_phrase}".strip()
    if detail := _error_detail(response):
        message = f"{message}: {detail}"
    return ApiError(code=code_for_status(response.status_code), message=message, status=response.status_code)


def parse_flag_state(response: httpx.Response, environment_key: str) -> FlagState:
    """Extract the post-mutation state of ``environment_key`` from a response.

    Raises:
        ApiError: When the body is not JSON or the environment entry (with
            ``on`` and ``lastModified``) is missing.
    """
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiError(
            code=ErrorCode.VALIDATION,
            message="mutation response is not valid JSON",
            status=response.status_code,
            raw=exc,
        ) from exc
    environments = data.get("environments") if isinstance(data, dict) else None
    env = environments.get(environment_key) if isinstance(environments, dict) else None
    if not isinstance(env, dict):
        raise ApiError(
            code=ErrorCode.VALIDATION,
            message=f"mutation response has no environment '{environment_key}'",
            status=response.status_code,
        )
    on = env.get("on")
    last_modified = env.get("lastModified")
    if not isinstance(on, bool) or not isinstance(last_modified, (int, float)) or isinstance(last_modified, bool):
        raise ApiError(
            code=ErrorCode.VALIDATION,
            message=f"environment '{environment_key}' lacks 'on' or 'lastModified'",
            status=response.status_code,
        )
    return FlagState(is_on=on, last_modified_ms=int(last_modified))


__all__ = [
    "SEMANTIC_PATCH_CONTENT_TYPE",
    "TURN_ON",
    "TURN_OFF",
    "instruction_kind",
    "flag_path",
    "build_params",
    "build_headers",
    "build_body",
    "error_from_response",
    "parse_flag_state",
]
