"""Combine a block's projections into one analytics view."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from polymarket_orderbook.core.domain.numeric import parse_decimal
from polymarket_orderbook.core.domain.types import OrderbookAnalytics

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import (
        GlobalOrderbookStats,
        MarketOrderbooks,
        TraderAccount,
        TraderAccounts,
    )

DEFAULT_TOP_TRADERS = 10


def rank_top_traders(accounts: Sequence[TraderAccount], limit: int) -> list[TraderAccount]:
    """Highest ``total_volume`` first; ties keep input order.

    A volume that does not parse ranks as zero.
    """
    if limit <= 0:
        return []
    ranked = sorted(accounts, key=lambda a: parse_decimal(a.total_volume), reverse=True)
    return ranked[:limit]


def combine_analytics(
    markets: MarketOrderbooks,
    traders: TraderAccounts,
    global_stats: GlobalOrderbookStats,
    top_n: int = DEFAULT_TOP_TRADERS,
) -> OrderbookAnalytics:
    return OrderbookAnalytics(
        block_number=markets.block_number,
        block_hash=markets.block_hash,
        timestamp=markets.timestamp,
        market_orderbooks=list(markets.orderbooks),
        trader_accounts=list(traders.accounts),
        global_stats=global_stats,
        top_traders=rank_top_traders(traders.accounts, top_n),
    )
