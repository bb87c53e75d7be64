"""Core shared data models and schemas.

This module defines the canonical Pydantic models used across the pipeline:
extracted exchange events and their per-block batches, the aggregate rows kept
in the stores, the block-scoped projections, and the change records handed to
the sink. Monetary amounts are base-10 strings throughout.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TradeSide = Literal["buy", "sell", "unknown"]
TraderType = Literal["retail", "whale", "arbitrageur", "market_maker"]
Exchange = Literal["ctf", "neg_risk"]
EventKind = Literal["order_filled", "orders_matched"]
ChangeOperation = Literal["create", "update"]

GLOBAL_STATS_KEY = "global"

# ---------------------------------------------------------------------------
# Extracted events
# ---------------------------------------------------------------------------


class OrderFilledEvent(BaseModel):
    event_kind: Literal["order_filled"] = "order_filled"

    id: str = Field(..., min_length=1, description="'{transaction_hash}-{order_hash}'.")
    exchange: Exchange
    transaction_hash: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0, description="Block timestamp in seconds.")

    order_hash: str = Field(..., min_length=1)
    maker: str = Field(..., min_length=1)
    taker: str = Field(..., min_length=1)

    maker_asset_id: str
    taker_asset_id: str
    maker_amount_filled: str
    taker_amount_filled: str
    fee: str

    block_number: int = Field(..., ge=0)
    side: TradeSide
    price: str
    ordinal: int = Field(..., ge=0, description="Block-global log position.")

    model_config = ConfigDict(extra="forbid")


class OrdersMatchedEvent(BaseModel):
    event_kind: Literal["orders_matched"] = "orders_matched"

    id: str = Field(..., min_length=1, description="'{transaction_hash}-{ordinal}'.")
    exchange: Exchange
    transaction_hash: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0)

    taker_order_hash: str
    taker_order_maker: str

    maker_asset_id: str
    taker_asset_id: str
    maker_amount_filled: str
    taker_amount_filled: str

    block_number: int = Field(..., ge=0)
    ordinal: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


DomainEvent = Annotated[
    OrderFilledEvent | OrdersMatchedEvent,
    Field(discriminator="event_kind"),
]


class BlockMeta(BaseModel):
    """Block identity shared by every per-block collection."""

    block_number: int = Field(..., ge=0)
    block_hash: str = ""
    timestamp: int | None = None

    model_config = ConfigDict(extra="forbid")


class OrderFilledEvents(BlockMeta):
    events: list[OrderFilledEvent] = Field(default_factory=list)


class OrdersMatchedEvents(BlockMeta):
    events: list[OrdersMatchedEvent] = Field(default_factory=list)


EventBatch = OrderFilledEvents | OrdersMatchedEvents

# ---------------------------------------------------------------------------
# Store rows
# ---------------------------------------------------------------------------


class MarketOrderbook(BaseModel):
    id: str = Field(..., min_length=1, description="Normalized maker asset id.")
    condition_id: str

    trades_quantity: int = Field(0, ge=0)
    buys_quantity: int = Field(0, ge=0)
    sells_quantity: int = Field(0, ge=0)

    collateral_volume: str = "0"
    scaled_collateral_volume: str = "0"
    average_trade_size: str = "0"
    total_fees: str = "0"

    last_active_day: int = Field(0, ge=0)
    last_updated_block: int = Field(0, ge=0)

    # Declared for downstream schemas, not computed by the aggregators.
    mid_price: str = "0"
    spread: str = "0"
    volume_24h: str = "0"
    volume_7d: str = "0"
    price_change_24h: str = "0"
    volatility: str = "0"
    unique_traders_24h: int = 0
    liquidity_score: str = "0"
    market_depth: str = "0"

    model_config = ConfigDict(extra="forbid")


class TraderAccount(BaseModel):
    id: str = Field(..., min_length=1, description="Trader address.")

    trades_quantity: int = Field(0, ge=0)
    total_volume: str = "0"
    total_fees: str = "0"

    first_trade: int = Field(..., ge=0)
    last_trade: int = Field(..., ge=0)

    is_active: bool = True
    trader_type: TraderType = "retail"
    markets_traded: int = Field(0, ge=0)

    # Declared for downstream schemas, not computed by the aggregators.
    volume_24h: str = "0"
    volume_7d: str = "0"
    pnl_realized: str = "0"
    pnl_unrealized: str = "0"
    win_rate: str = "0"
    risk_score: str = "0"

    model_config = ConfigDict(extra="forbid")


class GlobalOrderbookStats(BaseModel):
    id: str = GLOBAL_STATS_KEY

    trades_quantity: int = Field(0, ge=0)
    buys_quantity: int = Field(0, ge=0)
    sells_quantity: int = Field(0, ge=0)

    collateral_volume: str = "0"
    scaled_collateral_volume: str = "0"
    total_fees: str = "0"
    average_trade_size: str = "0"
    platform_fee_revenue: str = "0"

    unique_traders: int = Field(0, ge=0)
    active_markets: int = Field(0, ge=0)
    last_updated: int | None = None

    # Declared for downstream schemas, not computed by the aggregators.
    total_liquidity: str = "0"
    volume_24h: str = "0"
    volume_7d: str = "0"
    volatility: str = "0"
    price_change_24h: str = "0"
    new_traders_24h: int = 0
    new_markets_24h: int = 0
    average_spread: str = "0"
    maker_taker_ratio: str = "0"

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Block-scoped projections
# ---------------------------------------------------------------------------


class MarketOrderbooks(BlockMeta):
    orderbooks: list[MarketOrderbook] = Field(default_factory=list)


class TraderAccounts(BlockMeta):
    accounts: list[TraderAccount] = Field(default_factory=list)


class OrderbookAnalytics(BlockMeta):
    market_orderbooks: list[MarketOrderbook] = Field(default_factory=list)
    trader_accounts: list[TraderAccount] = Field(default_factory=list)
    global_stats: GlobalOrderbookStats
    top_traders: list[TraderAccount] = Field(default_factory=list)

    # Reserved for alerting / arbitrage / sentiment components; always empty.
    market_alerts: list[dict[str, Any]] = Field(default_factory=list)
    arbitrage_opportunities: list[dict[str, Any]] = Field(default_factory=list)
    sentiment: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Change records (sink boundary)
# ---------------------------------------------------------------------------


class TableChange(BaseModel):
    table: str = Field(..., min_length=1)
    pk: str = Field(..., min_length=1)
    ordinal: int = Field(..., ge=0)
    operation: ChangeOperation
    columns: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class DatabaseChanges(BlockMeta):
    table_changes: list[TableChange] = Field(default_factory=list)

    def tables(self) -> set[str]:
        return {c.table for c in self.table_changes}

    def for_table(self, table: str) -> list[TableChange]:
        return [c for c in self.table_changes if c.table == table]
