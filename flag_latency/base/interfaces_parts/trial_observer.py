"""TrialObserver Protocol (single-class module)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..errors import ProbeError
from ..models import TrialRecord

if TYPE_CHECKING:
    from ...metrics import RunningAverage


@runtime_checkable
class TrialObserver(Protocol):
    """Presentation-side hooks for trial outcomes.

    Called without the coordinator lock held, after the state change they
    report has been applied.
    """

    def on_ready(self) -> None:  # pragma: no cover - interface
        """The coordinator is idle and will accept ``start()``."""
        ...

    def on_trial_completed(self, record: TrialRecord, average: "RunningAverage") -> None:  # pragma: no cover - interface
        """A trial finished and was folded into the running average."""
        ...

    def on_trial_failed(self, index: int, error: ProbeError) -> None:  # pragma: no cover - interface
        """Trial ``index`` aborted with ``error``."""
        ...
