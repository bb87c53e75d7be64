"""
Semantic test: export variants.

Invariant:
The analytics variant writes the denormalized rows (extension columns and
block number included) to the *_analytics tables; "both" writes each
normalized record before its analytics counterpart.
"""

from __future__ import annotations

from polymarket_orderbook.core.events.sinks.null_event_bus import NullEventBus
from polymarket_orderbook.pipeline.block_pipeline import BlockPipeline
from polymarket_orderbook.pipeline.config import PipelineConfig


def _tables(chain, variant: str) -> list[str]:
    pipeline = BlockPipeline(PipelineConfig(export_variant=variant), NullEventBus())
    block = chain.block(1, chain.tx(chain.fill_log(ordinal=0)))
    return [c.table for c in pipeline.process_block(block).changes.table_changes]


def test_analytics_variant_tables(chain) -> None:
    assert _tables(chain, "analytics") == [
        "order_fills",
        "market_analytics",
        "trader_analytics",
        "trader_analytics",
        "global_analytics",
    ]


def test_both_variant_interleaves_per_entity(chain) -> None:
    assert _tables(chain, "both") == [
        "order_fills",
        "market_orderbooks",
        "market_analytics",
        "trader_accounts",
        "trader_accounts",
        "trader_analytics",
        "trader_analytics",
        "global_stats",
        "global_analytics",
    ]


def test_analytics_rows_are_denormalized(chain) -> None:
    pipeline = BlockPipeline(PipelineConfig(export_variant="analytics"), NullEventBus())
    block = chain.block(4, chain.tx(chain.fill_log(ordinal=0)))

    changes = pipeline.process_block(block).changes
    (market,) = changes.for_table("market_analytics")

    assert market.columns["block_number"] == "4"
    assert market.columns["volatility"] == "0"
    assert market.columns["unique_traders_24h"] == "0"
    assert market.columns["condition_id"] == "condition_2"
    assert "id" not in market.columns
