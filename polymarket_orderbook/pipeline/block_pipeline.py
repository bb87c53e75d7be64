"""Block pipeline driver.

Runs one block at a time through extraction, merge, the three aggregators,
projection, analytics and change-record formatting. The pipeline owns its
stores; nothing else writes to them.

A block is applied atomically: any failure while the aggregators run rolls
back every store's pending writes. Once the aggregators succeed, all stores
commit together and the block number advances before sinks are notified, so a
raising sink cannot leave one store a block ahead of another.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from polymarket_orderbook.core.domain.errors import BlockSequenceError
from polymarket_orderbook.core.domain.types import (
    GLOBAL_STATS_KEY,
    BlockMeta,
    GlobalOrderbookStats,
    MarketOrderbook,
    OrderFilledEvents,
    OrdersMatchedEvents,
    TraderAccount,
)
from polymarket_orderbook.core.events.events import (
    BlockProcessedEvent,
    ExtractionEvent,
    StoreCommitEvent,
)
from polymarket_orderbook.core.extract.extractors import build_extractors, run_extractors
from polymarket_orderbook.core.extract.merger import merge_all
from polymarket_orderbook.core.projection.analytics import combine_analytics
from polymarket_orderbook.core.projection.block_output import BlockOutput
from polymarket_orderbook.core.projection.change_records import format_block_changes
from polymarket_orderbook.core.projection.projectors import (
    project_global_stats,
    project_markets,
    project_traders,
)
from polymarket_orderbook.core.store.delta_store import DeltaStore, StoreDelta, detach
from polymarket_orderbook.core.store.global_stats import GlobalStatsAggregator
from polymarket_orderbook.core.store.markets import MarketsAggregator
from polymarket_orderbook.core.store.traders import TradersAggregator

if TYPE_CHECKING:
    from polymarket_orderbook.core.domain.chain import Block
    from polymarket_orderbook.core.events.event_bus import EventBus
    from polymarket_orderbook.pipeline.config import PipelineConfig

LOGGER = logging.getLogger(__name__)

MARKETS_STORE = "markets"
TRADERS_STORE = "traders"
TRADER_MARKETS_STORE = "trader_markets"
GLOBAL_STORE = "global_stats"


class BlockPipeline:
    """Process blocks in order and keep the aggregate stores up to date."""

    def __init__(self, config: PipelineConfig, event_bus: EventBus) -> None:
        self._config = config
        self._event_bus = event_bus

        self._extractors = build_extractors(config.contracts)

        self._markets_store: DeltaStore[MarketOrderbook] = DeltaStore(MARKETS_STORE)
        self._traders_store: DeltaStore[TraderAccount] = DeltaStore(TRADERS_STORE)
        self._trader_markets_store: DeltaStore[bool] = DeltaStore(TRADER_MARKETS_STORE)
        self._global_store: DeltaStore[GlobalOrderbookStats] = DeltaStore(GLOBAL_STORE)

        self._markets = MarketsAggregator()
        self._traders = TradersAggregator()
        self._global = GlobalStatsAggregator()

        self._last_block_number: int | None = None

    # ---- Read-only views ----
    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def markets_store(self) -> DeltaStore[MarketOrderbook]:
        return self._markets_store

    @property
    def traders_store(self) -> DeltaStore[TraderAccount]:
        return self._traders_store

    @property
    def global_store(self) -> DeltaStore[GlobalOrderbookStats]:
        return self._global_store

    @property
    def last_block_number(self) -> int | None:
        return self._last_block_number

    def _stores(self) -> tuple[DeltaStore[Any], ...]:
        return (
            self._markets_store,
            self._traders_store,
            self._trader_markets_store,
            self._global_store,
        )

    # ---- Processing ----
    def process_block(self, block: Block) -> BlockOutput:
        """Process ``block`` and return everything it produced.

        Raises:
            BlockSequenceError: the block does not follow the last processed one.
            InputContractError: the block is malformed (e.g. no timestamp).
        """
        self._check_sequence(block.number)

        # Extraction and merge. Nothing has touched the stores yet.
        batches = run_extractors(
            block,
            self._extractors,
            max_workers=self._config.extractor_workers,
        )
        for extractor, batch in zip(self._extractors, batches):
            self._event_bus.emit(
                ExtractionEvent(
                    block_number=block.number,
                    extractor=extractor.name,
                    event_count=len(batch.events),
                )
            )

        fills: OrderFilledEvents = merge_all(
            [b for b in batches if isinstance(b, OrderFilledEvents)]
        )
        matches: OrdersMatchedEvents = merge_all(
            [b for b in batches if isinstance(b, OrdersMatchedEvents)]
        )

        # Store stage: all or nothing.
        try:
            self._markets.apply(fills, self._markets_store)
            self._traders.apply(fills, self._traders_store, self._trader_markets_store)
            self._global.apply(
                fills,
                self._global_store,
                self._markets_store.deltas(),
                self._traders_store.deltas(),
            )
        except Exception:
            LOGGER.error(
                "Block %d failed in store stage; rolling back",
                block.number,
                extra={"block_number": block.number},
            )
            for store in self._stores():
                store.rollback()
            raise

        # All stores commit before any event is emitted. A sink failure past
        # this point leaves the block fully applied.
        market_deltas = detach(self._markets_store.commit())
        trader_deltas = detach(self._traders_store.commit())
        trader_market_deltas = self._trader_markets_store.commit()
        global_deltas = detach(self._global_store.commit())
        self._last_block_number = block.number

        self._emit_commit(block.number, self._markets_store, market_deltas)
        self._emit_commit(block.number, self._traders_store, trader_deltas)
        self._emit_commit(block.number, self._trader_markets_store, trader_market_deltas)
        self._emit_commit(block.number, self._global_store, global_deltas)

        # Projection.
        meta = BlockMeta(
            block_number=fills.block_number,
            block_hash=fills.block_hash,
            timestamp=fills.timestamp,
        )
        markets = project_markets(meta, market_deltas)
        traders = project_traders(meta, trader_deltas)
        global_stats = project_global_stats(global_deltas)

        analytics = combine_analytics(
            markets,
            traders,
            global_stats if global_stats is not None else self._latest_global_stats(),
            top_n=self._config.top_traders_limit,
        )

        changes = format_block_changes(
            meta,
            order_fills=fills.events,
            orders_matched=matches.events,
            market_deltas=market_deltas,
            trader_deltas=trader_deltas,
            global_deltas=global_deltas,
            variant=self._config.export_variant,
        )

        output = BlockOutput(
            meta=meta,
            order_fills=fills,
            orders_matched=matches,
            market_deltas=market_deltas,
            trader_deltas=trader_deltas,
            global_deltas=global_deltas,
            markets=markets,
            traders=traders,
            global_stats=global_stats,
            analytics=analytics,
            changes=changes,
        )

        self._event_bus.emit(
            BlockProcessedEvent(
                block_number=block.number,
                block_hash=block.hash,
                timestamp=block.timestamp_seconds,
                fills=len(fills.events),
                matches=len(matches.events),
                markets_changed=len(market_deltas),
                traders_changed=len(trader_deltas),
                global_changed=global_stats is not None,
                table_changes=len(changes.table_changes),
            )
        )
        return output

    def _check_sequence(self, block_number: int) -> None:
        last = self._last_block_number
        if last is None:
            return

        if self._config.require_contiguous_blocks:
            if block_number != last + 1:
                raise BlockSequenceError(expected=last + 1, received=block_number, contiguous=True)
        elif block_number <= last:
            raise BlockSequenceError(expected=last, received=block_number, contiguous=False)

    def _emit_commit(
        self,
        block_number: int,
        store: DeltaStore[Any],
        deltas: list[StoreDelta[Any]],
    ) -> None:
        created = sum(1 for d in deltas if d.old_value is None)
        self._event_bus.emit(
            StoreCommitEvent(
                block_number=block_number,
                store=store.name,
                created=created,
                updated=len(deltas) - created,
            )
        )

    def _latest_global_stats(self) -> GlobalOrderbookStats:
        latest = self._global_store.get_last(GLOBAL_STATS_KEY)
        if latest is None:
            return GlobalOrderbookStats()
        return latest.model_copy(deep=True)

    # ---- Host persistence ----
    def state_snapshot(self) -> dict[str, dict[str, Any]]:
        """Detached copy of every store's committed key -> value map, keyed by store name."""
        return {store.name: store.snapshot() for store in self._stores()}

    def restore_state(
        self,
        state: Mapping[str, Mapping[str, Any]],
        *,
        last_block_number: int | None,
    ) -> None:
        """Load a snapshot taken with :meth:`state_snapshot`.

        Stores missing from ``state`` are reset to empty.
        """
        for store in self._stores():
            store.load(state.get(store.name, {}))
        self._last_block_number = last_block_number
        LOGGER.info(
            "Pipeline state restored",
            extra={"last_block_number": last_block_number},
        )
