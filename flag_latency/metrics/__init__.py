"""Latency metrics package.

Exports the running average accumulator and its snapshot type.
"""

from .accumulator import RunningAverageAccumulator
from .running_average import RunningAverage

__all__ = ["RunningAverageAccumulator", "RunningAverage"]
