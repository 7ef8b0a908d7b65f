"""
Completed trial measurement.

A ``TrialRecord`` is only ever built by :meth:`TrialRecord.from_notification`,
which checks the notification's flag key against the flag under test and
derives the latency from the two authoritative timestamps.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TrialRecord:
    """Immutable result of one successful trial.

    Attributes:
        index: 1-based trial number.
        toggle_sent_at_ms: Local clock when the mutation result was accepted.
        server_last_modified_ms: Control-plane last-modified timestamp.
        client_received_at_ms: Local clock when the update notification ran.
        latency_ms: ``|client_received_at_ms - server_last_modified_ms|``.
        mutation_round_trip_ms: Wall time of the mutation HTTP call, if known.

    All timestamps are epoch milliseconds.
    """

    index: int
    toggle_sent_at_ms: int
    server_last_modified_ms: int
    client_received_at_ms: int
    latency_ms: int
    mutation_round_trip_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"trial index must be >= 1, got {self.index}")
        if self.latency_ms < 0:
            raise ValueError(f"latency must be non-negative, got {self.latency_ms}")

    @classmethod
    def from_notification(
        cls,
        *,
        index: int,
        expected_flag_key: str,
        notified_flag_key: str,
        toggle_sent_at_ms: int,
        server_last_modified_ms: int,
        client_received_at_ms: int,
        mutation_round_trip_ms: Optional[float] = None,
    ) -> "TrialRecord":
        """Build a record from a correlated notification.

        Raises:
            ValueError: If the notification belongs to a different flag.
        """
        if notified_flag_key != expected_flag_key:
            raise ValueError(
                f"notification for '{notified_flag_key}' cannot complete a trial of '{expected_flag_key}'"
            )
        return cls(
            index=index,
            toggle_sent_at_ms=toggle_sent_at_ms,
            server_last_modified_ms=server_last_modified_ms,
            client_received_at_ms=client_received_at_ms,
            latency_ms=abs(client_received_at_ms - server_last_modified_ms),
            mutation_round_trip_ms=mutation_round_trip_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary of the record."""
        return asdict(self)


__all__ = ["TrialRecord"]
