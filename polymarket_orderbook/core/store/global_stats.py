"""Platform-wide statistics aggregation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from polymarket_orderbook.core.domain.numeric import (
    DECIMAL_CONTEXT,
    bigint_to_scaled_decimal,
    calculate_average_trade_size,
    format_decimal,
    parse_decimal,
)
from polymarket_orderbook.core.domain.types import GLOBAL_STATS_KEY, GlobalOrderbookStats

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import (
        MarketOrderbook,
        OrderFilledEvents,
        TraderAccount,
    )
    from polymarket_orderbook.core.store.delta_store import DeltaStore, StoreDelta


class GlobalStatsAggregator:
    """Maintain the single ``"global"`` statistics row.

    Trade counters and amounts are folded per fill. ``active_markets`` and
    ``unique_traders`` grow by the number of markets and traders created in
    this block, read from the markets and traders deltas, so they must be
    applied after those aggregators have run.
    """

    def apply(
        self,
        batch: OrderFilledEvents,
        store: DeltaStore[GlobalOrderbookStats],
        market_deltas: Sequence[StoreDelta[MarketOrderbook]],
        trader_deltas: Sequence[StoreDelta[TraderAccount]],
    ) -> GlobalOrderbookStats | None:
        """Apply ``batch``; returns the written row, or None for a fill-less block."""
        if not batch.events:
            return None

        existing = store.get_last(GLOBAL_STATS_KEY)
        stats = existing.model_copy(deep=True) if existing is not None else GlobalOrderbookStats()

        volume = parse_decimal(stats.collateral_volume)
        fees = parse_decimal(stats.total_fees)

        for event in batch.events:
            stats.trades_quantity += 1
            if event.side == "buy":
                stats.buys_quantity += 1
            elif event.side == "sell":
                stats.sells_quantity += 1

            volume = DECIMAL_CONTEXT.add(volume, parse_decimal(event.taker_amount_filled))
            fees = DECIMAL_CONTEXT.add(fees, parse_decimal(event.fee))
            stats.last_updated = event.timestamp

        stats.collateral_volume = format_decimal(volume)
        stats.scaled_collateral_volume = format_decimal(bigint_to_scaled_decimal(volume))
        stats.total_fees = format_decimal(fees)
        stats.platform_fee_revenue = stats.total_fees
        stats.average_trade_size = format_decimal(
            calculate_average_trade_size(volume, stats.trades_quantity)
        )

        stats.active_markets += sum(1 for d in market_deltas if d.old_value is None)
        stats.unique_traders += sum(1 for d in trader_deltas if d.old_value is None)

        store.set(batch.events[-1].ordinal, GLOBAL_STATS_KEY, stats)
        return stats
