"""Data model parts split into single-class modules."""

from .flag_state import FlagState
from .trial_record import TrialRecord
from .trial_session import TrialSession
from .trial_state import TrialState

__all__ = ["FlagState", "TrialRecord", "TrialSession", "TrialState"]
