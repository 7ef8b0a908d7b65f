"""Collaborator contracts consumed by the trial coordinator."""

from .interfaces_parts import FlagMutator, Scheduler, TrialObserver, UpdateClient

__all__ = ["FlagMutator", "Scheduler", "TrialObserver", "UpdateClient"]
