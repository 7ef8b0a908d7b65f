"""LaunchDarkly collaborators: REST control-plane mutator and SDK update client."""

from .mutator import ControlPlaneMutator
from .update_client import LaunchDarklyUpdateClient

__all__ = ["ControlPlaneMutator", "LaunchDarklyUpdateClient"]
