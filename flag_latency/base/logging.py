"""Base structured logging utilities for the latency probe.

Rationale:
- Central place to configure consistent JSON (or plain) logging.
- Avoid sprinkling ad-hoc logger setup across the coordinator, the mutator and
  the update client adapter.
- Route the LaunchDarkly SDK's own ``ldclient`` logger through the same
  handlers so SDK diagnostics and trial status lines interleave in one stream.

Every trial status line is emitted with :func:`log_event`, which serializes an
event name, the :class:`LogContext` fields and arbitrary key/value pairs into a
single JSON payload. :class:`TextFormatter` renders that payload as a readable
status line for interactive sessions; :class:`JsonFormatter` keeps it as JSON.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from .log_support import JsonFormatter, LogContext, TextFormatter

BASE_LOGGER_NAME = "flag_latency"
SDK_LOGGER_NAME = "ldclient"
LOG_LEVEL_ENV = "FLAG_LATENCY_LOG_LEVEL"

# Above CRITICAL; used for the ``none`` level so nothing is emitted.
SILENT = logging.CRITICAL + 10

_BASE_LOGGER_ATTR = "_flag_latency_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_flag_latency_console_handler"
_FILE_HANDLER_ATTR = "_flag_latency_file_handler"


def _make_formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else TextFormatter()


def _ensure_base_logger(json_mode: Optional[bool] = None, level: Optional[int] = None) -> logging.Logger:
    """Initialize and return the shared ``flag_latency`` logger.

    The first call installs the console handler at ``level`` (or the
    ``FLAG_LATENCY_LOG_LEVEL`` override, or INFO). Later calls only change
    what is passed explicitly, so module-level ``get_logger`` calls never undo
    a :func:`configure_logger` choice.
    """

    logger = logging.getLogger(BASE_LOGGER_NAME)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        if level is not None and logger.level != level:
            logger.setLevel(level)
        for existing in list(logger.handlers):
            if not getattr(existing, _CONSOLE_HANDLER_ATTR, False):
                continue
            stream_obj = getattr(existing, "stream", None)
            if stream_obj is None or getattr(stream_obj, "closed", False):
                # pytest capture may have closed the previous stream
                logger.removeHandler(existing)
                with contextlib.suppress(Exception):
                    existing.close()
                use_json = isinstance(existing.formatter, JsonFormatter) if json_mode is None else json_mode
                logger.addHandler(_console_handler(use_json, existing.level))
                continue
            if level is not None:
                existing.setLevel(level)
            if json_mode is True and not isinstance(existing.formatter, JsonFormatter):
                existing.setFormatter(JsonFormatter())
            elif json_mode is False and isinstance(existing.formatter, JsonFormatter):
                existing.setFormatter(TextFormatter())
        return logger

    desired_level = parse_level(os.getenv(LOG_LEVEL_ENV), default=logging.INFO if level is None else level)
    logger.setLevel(desired_level)
    logger.handlers[:] = [_console_handler(bool(json_mode), desired_level)]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def _console_handler(json_mode: bool, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    return handler


def parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Parse a logging level string into an integer constant.

    Accepts the probe's level names (``debug``, ``info``, ``warn``, ``error``,
    ``none``) as well as the standard logging names, case-insensitively.
    Falls back to ``default`` on unknown values.
    """
    if not value:
        return default
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
        "NONE": SILENT,
    }
    return mapping.get(value.strip().upper(), default)


def get_logger(
    name: str = BASE_LOGGER_NAME, json_mode: Optional[bool] = None, level: Optional[int] = None
) -> logging.Logger:
    """Return a logger wired to the shared base logger.

    Names under ``flag_latency.`` become children that propagate to the base
    logger; the base logger owns the only console handler. ``json_mode`` and
    ``level`` are applied only when given.
    """
    base_logger = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == BASE_LOGGER_NAME:
        return base_logger
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        if getattr(handler, _CONSOLE_HANDLER_ATTR, False):
            logger.removeHandler(handler)
            with contextlib.suppress(Exception):
                handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = False,
    route_sdk_logs: bool = True,
) -> logging.Logger:
    """Reconfigure the shared probe logger at runtime.

    Parameters
    ----------
    level: int | str | None
        Desired logging level. Accepts numeric levels or names (e.g.,
        ``"debug"``, ``"none"``). When ``None``, the current level is kept.
    file_path: Optional[str]
        When provided, a rotating file handler is attached (created if
        missing). When ``None``, any previously attached managed file handler
        is removed.
    json_mode: bool
        Whether console and file handlers use the JSON formatter.
    route_sdk_logs: bool
        Send the LaunchDarkly SDK logger through the same handlers and level.

    Returns
    -------
    logging.Logger
        The configured base logger.
    """
    logger = get_logger(BASE_LOGGER_NAME, json_mode=json_mode)

    if level is not None:
        resolved = parse_level(level, default=logger.level) if isinstance(level, str) else level
        logger.setLevel(resolved)
        for h in logger.handlers:
            h.setLevel(resolved)

    managed = [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]
    if file_path is None:
        for h in managed:
            logger.removeHandler(h)
            with contextlib.suppress(Exception):
                h.close()
    else:
        abs_path = os.path.abspath(os.path.expanduser(file_path))
        os.makedirs(os.path.dirname(abs_path), exist_ok=True)
        existing: Optional[logging.FileHandler] = None
        for h in managed:
            if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == abs_path:
                existing = h
            else:
                logger.removeHandler(h)
                with contextlib.suppress(Exception):
                    h.close()
        if existing is None:
            # 10MB x 5 backups
            fh = RotatingFileHandler(abs_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
            setattr(fh, _FILE_HANDLER_ATTR, True)
            existing = fh
            logger.addHandler(fh)
        existing.setFormatter(_make_formatter(json_mode))
        existing.setLevel(logger.level)

    if route_sdk_logs:
        _route_sdk_logger(logger)
    return logger


def _route_sdk_logger(base: logging.Logger) -> None:
    """Attach the base logger's handlers to the SDK logger at the same level."""
    sdk = logging.getLogger(SDK_LOGGER_NAME)
    sdk.setLevel(base.level)
    sdk.handlers[:] = list(base.handlers)
    sdk.propagate = False


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    message: str | None = None,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit a structured log event.

    Summary
    -------
    Base primitive for emitting structured log payloads. Keys whose values are
    ``None`` are dropped unless ``keep_none`` is set.

    Parameters
    ----------
    logger: logging.Logger
        Logger instance obtained from :func:`get_logger`.
    event: str
        Event name (e.g. ``trial.completed``).
    ctx: LogContext | None
        Project/environment/flag/trial context; merged shallowly.
    level: int
        Logging level of the emitted record.
    message: str | None
        Human-readable status line rendered by :class:`TextFormatter`.
    keep_none: bool
        When ``True``, preserve keys whose values are ``None``.
    **fields: Any
        Arbitrary serializable key/value pairs.
    """
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    if message is not None:
        payload["message"] = message
    if ctx:
        payload |= ctx.to_dict()
    if keep_none:
        payload.update(fields)
    else:
        payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


__all__ = [
    "LogContext",
    "BASE_LOGGER_NAME",
    "SDK_LOGGER_NAME",
    "SILENT",
    "get_logger",
    "configure_logger",
    "log_event",
    "parse_level",
]
