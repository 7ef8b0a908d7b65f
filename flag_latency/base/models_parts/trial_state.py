"""Lifecycle states of the trial coordinator."""
from __future__ import annotations

from enum import Enum


class TrialState(str, Enum):
    """``IDLE -> TOGGLING -> AWAITING_UPDATE -> SETTLING -> IDLE``.

    Every non-idle state may also fall back to ``IDLE`` when the trial aborts.
    """

    IDLE = "idle"
    TOGGLING = "toggling"
    AWAITING_UPDATE = "awaiting_update"
    SETTLING = "settling"


__all__ = ["TrialState"]
