"""FlagMutator Protocol (single-class module)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import FlagState


@runtime_checkable
class FlagMutator(Protocol):
    """Flips the flag under test in the control plane.

    Implementations send exactly one request per call and never retry. On
    failure they raise :class:`~flag_latency.base.errors.ApiError`.
    """

    def toggle(self, current_value: bool) -> FlagState:  # pragma: no cover - interface
        """Request the opposite of ``current_value`` and return the new state."""
        ...
