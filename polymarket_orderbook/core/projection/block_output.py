"""Everything one processed block produced."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import (
        BlockMeta,
        DatabaseChanges,
        GlobalOrderbookStats,
        MarketOrderbook,
        MarketOrderbooks,
        OrderbookAnalytics,
        OrderFilledEvents,
        OrdersMatchedEvents,
        TraderAccount,
        TraderAccounts,
    )
    from polymarket_orderbook.core.store.delta_store import StoreDelta


@dataclass(slots=True)
class BlockOutput:
    """Merged events, committed deltas, projections and change records of a single block.

    Deltas are detached copies: mutating them never reaches the stores.
    """

    meta: BlockMeta
    order_fills: OrderFilledEvents
    orders_matched: OrdersMatchedEvents

    market_deltas: list[StoreDelta[MarketOrderbook]]
    trader_deltas: list[StoreDelta[TraderAccount]]
    global_deltas: list[StoreDelta[GlobalOrderbookStats]]

    markets: MarketOrderbooks
    traders: TraderAccounts
    global_stats: GlobalOrderbookStats | None
    analytics: OrderbookAnalytics

    changes: DatabaseChanges

    @property
    def block_number(self) -> int:
        return self.meta.block_number

    @property
    def fill_count(self) -> int:
        return len(self.order_fills.events)
