"""Interfaces (Protocols) split into single-class modules.

``flag_latency.base.interfaces`` re-exports the stable API.
"""

from .flag_mutator import FlagMutator
from .scheduler import Scheduler
from .trial_observer import TrialObserver
from .update_client import UpdateClient

__all__ = ["FlagMutator", "Scheduler", "TrialObserver", "UpdateClient"]
