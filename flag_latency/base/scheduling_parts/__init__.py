"""One-class-per-file parts for handles and timer scheduling."""

from .handle import Handle
from .threading_scheduler import ThreadingScheduler

__all__ = ["Handle", "ThreadingScheduler"]
