"""Interactive and scripted trial runners for the CLI.

Purpose
-------
Turn user input into :meth:`LatencyTrialCoordinator.request_trial` calls and
print trial outcomes. Presentation only: no measurement logic lives here.

Commands (interactive mode)
---------------------------
- ``t`` / ``test``: run one trial (ignored while a trial is in flight)
- ``s`` / ``stats``: print the running average
- ``h`` / ``help``: list commands
- ``q`` / ``quit`` / ``exit`` (or EOF): leave
"""

from __future__ import annotations

import sys
import threading
from typing import Callable, Optional, TextIO

from ...base.errors import ProbeError
from ...base.models import TrialRecord
from ...metrics import RunningAverage
from ..coordinator import LatencyTrialCoordinator

READY_PROMPT = "Ready to run test. Press 't' then Enter to start."

HELP_TEXT = "\n".join(
    (
        "t, test   run one trial",
        "s, stats  show the running average",
        "h, help   show this help",
        "q, quit   exit",
    )
)


def format_average(average: RunningAverage) -> str:
    """One-line summary of the running average."""
    if average.completed_count == 0:
        return "No completed trials yet."
    return (
        f"Average flag delivery time: {average.value:.1f} ms over {average.completed_count} trial(s) "
        f"(min {average.min_ms} ms, max {average.max_ms} ms, last {average.last_ms} ms)"
    )


class ConsoleObserver:
    """Print trial outcomes to a text stream.

    Counts completions and failures so scripted runs can report a summary.
    """

    def __init__(self, out: Optional[TextIO] = None, *, prompt: bool = True) -> None:
        self._out = out or sys.stdout
        self._prompt = prompt
        self._lock = threading.Lock()
        self.completed = 0
        self.failed = 0

    def write(self, text: str) -> None:
        """Print one line, serialized across threads."""
        with self._lock:
            print(text, file=self._out, flush=True)

    def on_ready(self) -> None:
        if self._prompt:
            self.write(READY_PROMPT)

    def on_trial_completed(self, record: TrialRecord, average: RunningAverage) -> None:
        self.completed += 1
        self.write(f"Test run #{record.index}: {record.latency_ms} ms. {format_average(average)}")

    def on_trial_failed(self, index: int, error: ProbeError) -> None:
        self.failed += 1
        self.write(f"Test run #{index} failed: {error}")


def _readline(prompt: str, reader: Callable[[str], str]) -> str:
    """Read a single line; return ``quit`` on EOF."""
    try:
        return reader(prompt)
    except EOFError:
        return "quit"


def run_interactive(
    coordinator: LatencyTrialCoordinator,
    observer: ConsoleObserver,
    *,
    reader: Callable[[str], str] = input,
) -> int:
    """Prompt loop; returns the process exit code."""
    observer.on_ready()
    while True:
        line = _readline("", reader).strip().lower()
        if line in ("q", "quit", "exit"):
            return 0
        if line in ("t", "test"):
            if not coordinator.request_trial():
                observer.write("A test is already running; wait for it to finish.")
        elif line in ("s", "stats"):
            observer.write(format_average(coordinator.running_average()))
        elif line in ("h", "help", "?"):
            observer.write(HELP_TEXT)
        elif line:
            observer.write(f"Unknown command '{line}'. Type 'h' for help.")


def run_series(
    coordinator: LatencyTrialCoordinator,
    observer: ConsoleObserver,
    runs: int,
    *,
    trial_timeout: float,
) -> int:
    """Run ``runs`` trials back to back.

    Returns 0 when every trial completed, 1 otherwise.
    """
    for _ in range(runs):
        coordinator.request_trial()
        if not coordinator.wait_until_idle(trial_timeout):
            observer.write(f"Trial did not finish within {trial_timeout:g}s; stopping.")
            return 1
    observer.write(format_average(coordinator.running_average()))
    return 0 if observer.failed == 0 else 1


__all__ = [
    "ConsoleObserver",
    "format_average",
    "run_interactive",
    "run_series",
    "READY_PROMPT",
    "HELP_TEXT",
]
