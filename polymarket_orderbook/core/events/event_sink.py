"""
Event sink interface.

Sinks consume pipeline events emitted while blocks are processed.
"""
from __future__ import annotations

from typing import Any, Protocol


class EventSink(Protocol):
    def on_event(self, event: Any) -> None:
        """Consume a pipeline event."""
