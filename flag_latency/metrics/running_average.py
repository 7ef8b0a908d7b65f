"""Running average snapshot dataclass.

Immutable view of the latency aggregate across completed trials.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RunningAverage:
    """Immutable snapshot of the latency aggregate.

    Attributes:
        completed_count: Number of completed trials folded in.
        value: Cumulative mean latency (ms); ``0.0`` before the first trial.
        min_ms: Smallest observed latency or None if no samples.
        max_ms: Largest observed latency or None if no samples.
        last_ms: Latency of the most recent trial or None if no samples.
    """

    completed_count: int = 0
    value: float = 0.0
    min_ms: Optional[int] = None
    max_ms: Optional[int] = None
    last_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:  # convenience
        """Return a dictionary representation suitable for JSON serialization."""
        return asdict(self)


__all__ = ["RunningAverage"]
