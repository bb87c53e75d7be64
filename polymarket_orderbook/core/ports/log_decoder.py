"""Log decoder protocol.

This module defines the boundary between raw logs and typed exchange events.
Concrete implementations bind one event signature; the extractors never look
at topics or data themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.chain import Log

DecodedT_co = TypeVar("DecodedT_co", covariant=True)


class LogDecoder(Protocol[DecodedT_co]):
    """Decode one event signature from a raw log.

    Returning None means "not this event". It is the expected outcome for the
    vast majority of logs and must never raise.
    """

    def decode(self, log: Log) -> DecodedT_co | None:
        """Return the typed event, or None if the log does not match."""
