"""Format a block's output as generic table change records.

Two exports of the same deltas exist. The normalized variant writes the core
columns of each row to ``market_orderbooks``, ``trader_accounts`` and
``global_stats``. The analytics variant writes the denormalized row, extension
columns and block number included, to ``market_analytics``,
``trader_analytics`` and ``global_analytics``. Fills (``order_fills``) and
matches (``orders_matched``) are emitted by every variant.

Column values are always strings: booleans render as ``"true"``/``"false"``
and missing values as the empty string.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Sequence

from pydantic import BaseModel

from polymarket_orderbook.core.domain.types import DatabaseChanges, TableChange

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.types import (
        BlockMeta,
        OrderFilledEvent,
        OrdersMatchedEvent,
    )
    from polymarket_orderbook.core.store.delta_store import StoreDelta
    from polymarket_orderbook.pipeline.config import ExportVariant

ORDER_FILLS_TABLE = "order_fills"
ORDERS_MATCHED_TABLE = "orders_matched"

MARKET_ORDERBOOKS_TABLE = "market_orderbooks"
TRADER_ACCOUNTS_TABLE = "trader_accounts"
GLOBAL_STATS_TABLE = "global_stats"

MARKET_ANALYTICS_TABLE = "market_analytics"
TRADER_ANALYTICS_TABLE = "trader_analytics"
GLOBAL_ANALYTICS_TABLE = "global_analytics"

MARKET_CORE_COLUMNS = (
    "condition_id",
    "trades_quantity",
    "buys_quantity",
    "sells_quantity",
    "collateral_volume",
    "scaled_collateral_volume",
    "average_trade_size",
    "total_fees",
    "last_active_day",
    "last_updated_block",
)

TRADER_CORE_COLUMNS = (
    "trades_quantity",
    "total_volume",
    "total_fees",
    "first_trade",
    "last_trade",
    "is_active",
    "trader_type",
    "markets_traded",
)

GLOBAL_CORE_COLUMNS = (
    "trades_quantity",
    "buys_quantity",
    "sells_quantity",
    "collateral_volume",
    "scaled_collateral_volume",
    "total_fees",
    "average_trade_size",
    "platform_fee_revenue",
    "unique_traders",
    "active_markets",
    "last_updated",
)

# ---------------------------------------------------------------------------
# Column rendering
# ---------------------------------------------------------------------------


def render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def row_columns(row: BaseModel, columns: Sequence[str] | None = None) -> dict[str, str]:
    """Render ``row`` as a column map; ``id`` is the primary key and is left out."""
    data = row.model_dump(exclude={"id", "event_kind"})
    names = columns if columns is not None else list(data)
    return {name: render_value(data[name]) for name in names}


# ---------------------------------------------------------------------------
# Per-table formatters
# ---------------------------------------------------------------------------


def format_order_fills(events: Iterable[OrderFilledEvent]) -> list[TableChange]:
    return [
        TableChange(
            table=ORDER_FILLS_TABLE,
            pk=e.id,
            ordinal=e.ordinal,
            operation="create",
            columns=row_columns(e),
        )
        for e in events
    ]


def format_orders_matched(events: Iterable[OrdersMatchedEvent]) -> list[TableChange]:
    return [
        TableChange(
            table=ORDERS_MATCHED_TABLE,
            pk=e.id,
            ordinal=e.ordinal,
            operation="create",
            columns=row_columns(e),
        )
        for e in events
    ]


def format_deltas(
    table: str,
    deltas: Iterable[StoreDelta[Any]],
    *,
    columns: Sequence[str] | None = None,
    block_number: int | None = None,
) -> list[TableChange]:
    """One change per delta; ``create`` when the key had no prior value.

    With ``columns=None`` every field of the row is written. ``block_number``
    adds a ``block_number`` column (analytics tables).
    """
    changes: list[TableChange] = []
    for delta in deltas:
        row = row_columns(delta.new_value, columns)
        if block_number is not None:
            row["block_number"] = str(block_number)
        changes.append(
            TableChange(
                table=table,
                pk=delta.key,
                ordinal=delta.ordinal,
                operation=delta.operation,
                columns=row,
            )
        )
    return changes


def format_block_changes(
    meta: BlockMeta,
    *,
    order_fills: Sequence[OrderFilledEvent],
    orders_matched: Sequence[OrdersMatchedEvent],
    market_deltas: Sequence[StoreDelta[Any]],
    trader_deltas: Sequence[StoreDelta[Any]],
    global_deltas: Sequence[StoreDelta[Any]],
    variant: ExportVariant = "normalized",
) -> DatabaseChanges:
    """Build the change records for one block.

    Order: fills, matches, markets, traders, global. Within a table, records
    follow delta order. With ``"both"`` the normalized record of an entity
    kind precedes its analytics record.
    """
    normalized = variant in ("normalized", "both")
    analytics = variant in ("analytics", "both")
    block_number = meta.block_number

    changes: list[TableChange] = []
    changes.extend(format_order_fills(order_fills))
    changes.extend(format_orders_matched(orders_matched))

    entity_tables = (
        (market_deltas, MARKET_ORDERBOOKS_TABLE, MARKET_ANALYTICS_TABLE, MARKET_CORE_COLUMNS),
        (trader_deltas, TRADER_ACCOUNTS_TABLE, TRADER_ANALYTICS_TABLE, TRADER_CORE_COLUMNS),
        (global_deltas, GLOBAL_STATS_TABLE, GLOBAL_ANALYTICS_TABLE, GLOBAL_CORE_COLUMNS),
    )
    for deltas, normalized_table, analytics_table, core_columns in entity_tables:
        if normalized:
            changes.extend(format_deltas(normalized_table, deltas, columns=core_columns))
        if analytics:
            changes.extend(format_deltas(analytics_table, deltas, block_number=block_number))

    return DatabaseChanges(
        block_number=block_number,
        block_hash=meta.block_hash,
        timestamp=meta.timestamp,
        table_changes=changes,
    )
