"""Service layer: trial coordinator, application bootstrap and CLI."""

from .app import ProbeApp
from .coordinator import LatencyTrialCoordinator, wall_clock_ms

__all__ = ["ProbeApp", "LatencyTrialCoordinator", "wall_clock_ms"]
