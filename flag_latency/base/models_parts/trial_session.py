"""
Live, mutable state of a trial coordinator.

Exactly one session exists per coordinator; only the coordinator's transition
methods write to it, always while holding the coordinator lock.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ProbeError
from .flag_state import FlagState
from .trial_state import TrialState


@dataclass
class TrialSession:
    """Coordinator-owned state for the current (or last) trial.

    Attributes:
        state: Current lifecycle state.
        current_index: Number of trial attempts started so far.
        current_flag_value: Last known on/off value of the flag under test.
        pending_flag_state: Control-plane state of the in-flight trial.
        toggle_sent_at_ms: Local timestamp when the mutation result arrived.
        client_received_at_ms: Local timestamp of the matching notification.
        notified_flag_key: Flag key carried by the matching notification.
        mutation_round_trip_ms: Duration of the in-flight mutation call.
        abort_error: Failure recorded while the mutation was outstanding.
    """

    state: TrialState = TrialState.IDLE
    current_index: int = 0
    current_flag_value: bool = False
    pending_flag_state: Optional[FlagState] = None
    toggle_sent_at_ms: Optional[int] = None
    client_received_at_ms: Optional[int] = None
    notified_flag_key: Optional[str] = None
    mutation_round_trip_ms: Optional[float] = None
    abort_error: Optional[ProbeError] = None

    @property
    def busy(self) -> bool:
        return self.state is not TrialState.IDLE

    def reset_trial(self) -> None:
        """Return to ``IDLE`` and forget per-trial fields (index is kept)."""
        self.state = TrialState.IDLE
        self.pending_flag_state = None
        self.toggle_sent_at_ms = None
        self.client_received_at_ms = None
        self.notified_flag_key = None
        self.mutation_round_trip_ms = None
        self.abort_error = None


__all__ = ["TrialSession"]
