"""Per-market orderbook aggregation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from polymarket_orderbook.core.domain.numeric import (
    DECIMAL_CONTEXT,
    bigint_to_scaled_decimal,
    calculate_average_trade_size,
    extract_condition_id,
    format_decimal,
    normalize_asset_id,
    parse_decimal,
    timestamp_to_day,
)
from polymarket_orderbook.core.domain.types import MarketOrderbook

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import OrderFilledEvent, OrderFilledEvents
    from polymarket_orderbook.core.store.delta_store import DeltaStore

LOGGER = logging.getLogger(__name__)


def new_market(asset_id: str, *, timestamp: int, block_number: int) -> MarketOrderbook:
    return MarketOrderbook(
        id=asset_id,
        condition_id=extract_condition_id(asset_id),
        last_active_day=timestamp_to_day(timestamp),
        last_updated_block=block_number,
    )


def apply_fill(market: MarketOrderbook, event: OrderFilledEvent) -> None:
    """Fold one fill into ``market`` in place."""
    market.trades_quantity += 1
    if event.side == "buy":
        market.buys_quantity += 1
    elif event.side == "sell":
        market.sells_quantity += 1

    volume = DECIMAL_CONTEXT.add(
        parse_decimal(market.collateral_volume),
        parse_decimal(event.taker_amount_filled),
    )
    fees = DECIMAL_CONTEXT.add(parse_decimal(market.total_fees), parse_decimal(event.fee))

    market.collateral_volume = format_decimal(volume)
    market.scaled_collateral_volume = format_decimal(bigint_to_scaled_decimal(volume))
    market.total_fees = format_decimal(fees)
    market.average_trade_size = format_decimal(
        calculate_average_trade_size(volume, market.trades_quantity)
    )
    market.last_active_day = timestamp_to_day(event.timestamp)
    market.last_updated_block = event.block_number


class MarketsAggregator:
    """Fold a block's fills into the per-market store.

    Markets are keyed by the normalized maker asset id. Each touched market is
    written once per block, at the ordinal of the last fill that touched it.
    """

    def apply(self, batch: OrderFilledEvents, store: DeltaStore[MarketOrderbook]) -> int:
        """Apply ``batch`` to ``store`` and return the number of markets written."""
        working: dict[str, MarketOrderbook] = {}
        last_ordinal: dict[str, int] = {}

        for event in batch.events:
            key = normalize_asset_id(event.maker_asset_id)

            market = working.get(key)
            if market is None:
                existing = store.get_last(key)
                if existing is None:
                    market = new_market(
                        key,
                        timestamp=event.timestamp,
                        block_number=batch.block_number,
                    )
                else:
                    market = existing.model_copy(deep=True)
                working[key] = market

            apply_fill(market, event)
            last_ordinal[key] = event.ordinal

        for key, market in working.items():
            store.set(last_ordinal[key], key, market)

        if working:
            LOGGER.debug(
                "Markets updated",
                extra={"block_number": batch.block_number, "markets": len(working)},
            )
        return len(working)
