"""
Authoritative flag state returned by the control plane.

Produced by the mutator from a successful mutation response and never
modified afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class FlagState:
    """On/off state of the flag in the target environment.

    Attributes:
        is_on: Whether targeting is on after the mutation.
        last_modified_ms: Server-side last-modified timestamp, epoch milliseconds.
    """

    is_on: bool
    last_modified_ms: int

    @property
    def last_modified_at(self) -> datetime:
        """``last_modified_ms`` as an aware UTC datetime."""
        return datetime.fromtimestamp(self.last_modified_ms / 1000, tz=timezone.utc)


__all__ = ["FlagState"]
