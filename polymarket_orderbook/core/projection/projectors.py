"""Turn a block's store deltas into block-scoped collections.

Projectors are pure: they copy the new value of every delta so nothing
downstream can reach back into store state, and projecting the same deltas
twice yields equal output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from polymarket_orderbook.core.domain.types import (
    GLOBAL_STATS_KEY,
    MarketOrderbooks,
    TraderAccounts,
)

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import (
        BlockMeta,
        GlobalOrderbookStats,
        MarketOrderbook,
        TraderAccount,
    )
    from polymarket_orderbook.core.store.delta_store import StoreDelta


def project_markets(
    meta: BlockMeta,
    deltas: Sequence[StoreDelta[MarketOrderbook]],
) -> MarketOrderbooks:
    return MarketOrderbooks(
        block_number=meta.block_number,
        block_hash=meta.block_hash,
        timestamp=meta.timestamp,
        orderbooks=[d.new_value.model_copy(deep=True) for d in deltas],
    )


def project_traders(
    meta: BlockMeta,
    deltas: Sequence[StoreDelta[TraderAccount]],
) -> TraderAccounts:
    return TraderAccounts(
        block_number=meta.block_number,
        block_hash=meta.block_hash,
        timestamp=meta.timestamp,
        accounts=[d.new_value.model_copy(deep=True) for d in deltas],
    )


def project_global_stats(
    deltas: Sequence[StoreDelta[GlobalOrderbookStats]],
) -> GlobalOrderbookStats | None:
    """Return the block's global row, or None when the block did not write it."""
    for delta in deltas:
        if delta.key == GLOBAL_STATS_KEY:
            return delta.new_value.model_copy(deep=True)
    return None
