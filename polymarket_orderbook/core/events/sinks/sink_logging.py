"""
Logging event sink.
"""
from __future__ import annotations

import logging
from typing import Any

from polymarket_orderbook.core.events.events import BlockProcessedEvent


class LoggingEventSink:
    """Logs pipeline events using the standard logging module.

    Block summaries are logged at INFO, everything else at DEBUG.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: Any) -> None:
        if isinstance(event, BlockProcessedEvent):
            self._logger.info(
                "Block %d processed: %d fills, %d matches, %d table changes",
                event.block_number,
                event.fills,
                event.matches,
                event.table_changes,
                extra={"event": event},
            )
            return
        self._logger.debug("pipeline_event", extra={"event": event})
