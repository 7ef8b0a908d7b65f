"""Cancellable handles and delayed-callback scheduling (public facade).

Notes
-----
- ``Handle`` is what subscriptions and timers hand back; cancelling it is
  idempotent.
- ``ThreadingScheduler`` is the production scheduler; tests drive the
  coordinator with a manual scheduler implementing the same ``Scheduler``
  protocol from ``flag_latency.base.interfaces``.
"""

from .scheduling_parts.handle import Handle
from .scheduling_parts.threading_scheduler import ThreadingScheduler

__all__ = ["Handle", "ThreadingScheduler"]
