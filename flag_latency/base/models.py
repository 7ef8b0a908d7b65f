"""Core data models for the latency probe.

Re-exports the one-class-per-file implementations under ``models_parts``.
"""

from .models_parts import FlagState, TrialRecord, TrialSession, TrialState

__all__ = ["FlagState", "TrialRecord", "TrialSession", "TrialState"]
