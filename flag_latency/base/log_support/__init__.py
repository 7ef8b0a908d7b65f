"""Auxiliary logging helpers (formatters, context) used by base.logging."""

from .json_formatter import JsonFormatter, ISO
from .logging_context import LogContext
from .text_formatter import TextFormatter, PLAIN_FORMAT

__all__ = ["JsonFormatter", "ISO", "LogContext", "TextFormatter", "PLAIN_FORMAT"]
