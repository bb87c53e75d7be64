"""Per-trader account aggregation.

Every fill touches two accounts: the maker's and the taker's. Both are
credited the fill's taker amount as volume; only the taker pays the fee.

Distinct markets per trader are tracked in an auxiliary boolean store keyed
``"{address}:{market_id}"``. The first sighting of a pair bumps
``markets_traded``; later sightings do not.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from polymarket_orderbook.core.domain.numeric import (
    DECIMAL_CONTEXT,
    classify_trader_type,
    format_decimal,
    normalize_asset_id,
    parse_decimal,
)
from polymarket_orderbook.core.domain.types import TraderAccount

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import OrderFilledEvent, OrderFilledEvents
    from polymarket_orderbook.core.store.delta_store import DeltaStore

LOGGER = logging.getLogger(__name__)


def trader_market_key(address: str, market_id: str) -> str:
    return f"{address}:{market_id}"


def new_account(address: str, *, timestamp: int) -> TraderAccount:
    return TraderAccount(id=address, first_trade=timestamp, last_trade=timestamp)


class TradersAggregator:
    """Fold a block's fills into the per-trader store."""

    def apply(
        self,
        batch: OrderFilledEvents,
        store: DeltaStore[TraderAccount],
        trader_markets: DeltaStore[bool],
    ) -> int:
        """Apply ``batch`` and return the number of accounts written."""
        working: dict[str, TraderAccount] = {}
        last_ordinal: dict[str, int] = {}

        for event in batch.events:
            market_id = normalize_asset_id(event.maker_asset_id)
            # Maker first, then taker; maker == taker updates the account twice.
            for address, is_taker in ((event.maker, False), (event.taker, True)):
                account = working.get(address)
                if account is None:
                    existing = store.get_last(address)
                    if existing is None:
                        account = new_account(address, timestamp=event.timestamp)
                    else:
                        account = existing.model_copy(deep=True)
                    working[address] = account

                first_in_market = trader_markets.set_if_not_exists(
                    event.ordinal, trader_market_key(address, market_id), True
                )
                self._apply_side(account, event, is_taker=is_taker, new_market=first_in_market)
                last_ordinal[address] = event.ordinal

        for address, account in working.items():
            store.set(last_ordinal[address], address, account)

        if working:
            LOGGER.debug(
                "Trader accounts updated",
                extra={"block_number": batch.block_number, "accounts": len(working)},
            )
        return len(working)

    @staticmethod
    def _apply_side(
        account: TraderAccount,
        event: OrderFilledEvent,
        *,
        is_taker: bool,
        new_market: bool,
    ) -> None:
        account.trades_quantity += 1

        volume = DECIMAL_CONTEXT.add(
            parse_decimal(account.total_volume),
            parse_decimal(event.taker_amount_filled),
        )
        account.total_volume = format_decimal(volume)

        if is_taker:
            account.total_fees = format_decimal(
                DECIMAL_CONTEXT.add(parse_decimal(account.total_fees), parse_decimal(event.fee))
            )

        if new_market:
            account.markets_traded += 1

        account.last_trade = event.timestamp
        account.is_active = True
        account.trader_type = classify_trader_type(
            account.trades_quantity, volume, account.markets_traded
        )
