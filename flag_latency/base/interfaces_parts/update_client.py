"""UpdateClient Protocol (single-class module)."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from ..errors import StreamError
from ..scheduling import Handle


@runtime_checkable
class UpdateClient(Protocol):
    """Long-lived flag-evaluation connection consumed by the coordinator.

    Handlers may be invoked from SDK worker threads. Notifications carry only
    the changed flag key; receivers stamp their own receipt time.
    """

    def initialize(self) -> None:  # pragma: no cover - interface
        """Open the connection without blocking on readiness."""
        ...

    def wait_for_initialization(self, timeout: float) -> None:  # pragma: no cover - interface
        """Block until ready; raise ``InitializationError`` after ``timeout`` seconds."""
        ...

    def read_variation(self, flag_key: str, context: Mapping[str, Any], default: bool) -> bool:  # pragma: no cover - interface
        """Evaluate a boolean flag for ``context``."""
        ...

    def subscribe(self, flag_key: str, handler: Callable[[str], None]) -> Handle:  # pragma: no cover - interface
        """Call ``handler(flag_key)`` whenever ``flag_key`` changes."""
        ...

    def on_error(self, handler: Callable[[StreamError], None]) -> Handle:  # pragma: no cover - interface
        """Call ``handler`` whenever the connection reports an error."""
        ...

    def close(self) -> None:  # pragma: no cover - interface
        """Release the connection."""
        ...
