"""Per-contract event extractors.

Each extractor is a pure function of one block: it walks the block's logs in
canonical order, keeps the logs emitted by its contract that decode as its
event, and turns them into domain events. Extractors share no mutable state,
so any number of them can run against the same block concurrently.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from polymarket_orderbook.core.decoding.abi import OrderFilledDecoder, OrdersMatchedDecoder
from polymarket_orderbook.core.domain.errors import InputContractError
from polymarket_orderbook.core.domain.numeric import (
    calculate_price,
    determine_trade_side,
    format_decimal,
    generate_match_id,
    generate_order_id,
)
from polymarket_orderbook.core.domain.types import (
    EventBatch,
    EventKind,
    Exchange,
    OrderFilledEvent,
    OrderFilledEvents,
    OrdersMatchedEvent,
    OrdersMatchedEvents,
)

if TYPE_CHECKING:
    from polymarket_orderbook.core.decoding.abi import DecodedOrderFilled, DecodedOrdersMatched
    from polymarket_orderbook.core.domain.chain import Block, Log, TransactionTrace
    from polymarket_orderbook.core.ports.log_decoder import LogDecoder
    from polymarket_orderbook.pipeline.config import ContractConfig

LOGGER = logging.getLogger(__name__)


def require_timestamp(block: Block) -> int:
    """Return the block timestamp or fail the block."""
    if block.timestamp_seconds is None:
        raise InputContractError(f"block {block.number} has no timestamp")
    return block.timestamp_seconds


class EventExtractor(ABC):
    """Extract one event kind emitted by one contract."""

    event_kind: EventKind

    def __init__(
        self,
        *,
        exchange: Exchange,
        contract_address: str,
        decoder: LogDecoder[Any],
    ) -> None:
        self.exchange = exchange
        self.contract_address = contract_address
        self.decoder = decoder

    @property
    def name(self) -> str:
        return f"{self.exchange}_{self.event_kind}"

    def extract(self, block: Block) -> EventBatch:
        """Return every matching event in the block, in log order."""
        timestamp = require_timestamp(block)
        events: list[Any] = []

        for trx, log in block.iter_logs():
            if log.address != self.contract_address:
                continue

            decoded = self.decoder.decode(log)
            if decoded is None:
                continue

            event = self._to_event(block, timestamp, trx, log, decoded)
            events.append(event)
            LOGGER.debug(
                "%s extracted %s",
                self.name,
                event.id,
                extra={"block_number": block.number, "ordinal": event.ordinal},
            )

        return self._make_batch(block, timestamp, events)

    @abstractmethod
    def _to_event(
        self,
        block: Block,
        timestamp: int,
        trx: TransactionTrace,
        log: Log,
        decoded: Any,
    ) -> Any:
        """Build the domain event for one decoded log."""

    @abstractmethod
    def _make_batch(self, block: Block, timestamp: int, events: list[Any]) -> EventBatch:
        """Wrap the extracted events into a block-scoped batch."""


class OrderFilledExtractor(EventExtractor):
    event_kind: EventKind = "order_filled"

    def __init__(
        self,
        *,
        exchange: Exchange,
        contract_address: str,
        decoder: LogDecoder[DecodedOrderFilled] | None = None,
    ) -> None:
        super().__init__(
            exchange=exchange,
            contract_address=contract_address,
            decoder=decoder or OrderFilledDecoder(),
        )

    def _to_event(
        self,
        block: Block,
        timestamp: int,
        trx: TransactionTrace,
        log: Log,
        decoded: DecodedOrderFilled,
    ) -> OrderFilledEvent:
        return OrderFilledEvent(
            id=generate_order_id(trx.hash, decoded.order_hash),
            exchange=self.exchange,
            transaction_hash=trx.hash,
            timestamp=timestamp,
            order_hash=decoded.order_hash,
            maker=decoded.maker,
            taker=decoded.taker,
            maker_asset_id=str(decoded.maker_asset_id),
            taker_asset_id=str(decoded.taker_asset_id),
            maker_amount_filled=str(decoded.maker_amount_filled),
            taker_amount_filled=str(decoded.taker_amount_filled),
            fee=str(decoded.fee),
            block_number=block.number,
            side=determine_trade_side(
                decoded.maker_asset_id,
                decoded.taker_asset_id,
                decoded.maker_amount_filled,
                decoded.taker_amount_filled,
            ),
            price=format_decimal(
                calculate_price(decoded.maker_amount_filled, decoded.taker_amount_filled)
            ),
            ordinal=log.ordinal,
        )

    def _make_batch(
        self,
        block: Block,
        timestamp: int,
        events: list[OrderFilledEvent],
    ) -> OrderFilledEvents:
        return OrderFilledEvents(
            events=events,
            block_number=block.number,
            block_hash=block.hash,
            timestamp=timestamp,
        )


class OrdersMatchedExtractor(EventExtractor):
    event_kind: EventKind = "orders_matched"

    def __init__(
        self,
        *,
        exchange: Exchange,
        contract_address: str,
        decoder: LogDecoder[DecodedOrdersMatched] | None = None,
    ) -> None:
        super().__init__(
            exchange=exchange,
            contract_address=contract_address,
            decoder=decoder or OrdersMatchedDecoder(),
        )

    def _to_event(
        self,
        block: Block,
        timestamp: int,
        trx: TransactionTrace,
        log: Log,
        decoded: DecodedOrdersMatched,
    ) -> OrdersMatchedEvent:
        return OrdersMatchedEvent(
            id=generate_match_id(trx.hash, log.ordinal),
            exchange=self.exchange,
            transaction_hash=trx.hash,
            timestamp=timestamp,
            taker_order_hash=decoded.taker_order_hash,
            taker_order_maker=decoded.taker_order_maker,
            maker_asset_id=str(decoded.maker_asset_id),
            taker_asset_id=str(decoded.taker_asset_id),
            maker_amount_filled=str(decoded.maker_amount_filled),
            taker_amount_filled=str(decoded.taker_amount_filled),
            block_number=block.number,
            ordinal=log.ordinal,
        )

    def _make_batch(
        self,
        block: Block,
        timestamp: int,
        events: list[OrdersMatchedEvent],
    ) -> OrdersMatchedEvents:
        return OrdersMatchedEvents(
            events=events,
            block_number=block.number,
            block_hash=block.hash,
            timestamp=timestamp,
        )


def build_extractors(contracts: Iterable[ContractConfig]) -> list[EventExtractor]:
    """Create the OrderFilled and OrdersMatched extractors for every contract."""
    extractors: list[EventExtractor] = []
    for contract in contracts:
        extractors.append(
            OrderFilledExtractor(exchange=contract.exchange, contract_address=contract.address)
        )
        extractors.append(
            OrdersMatchedExtractor(exchange=contract.exchange, contract_address=contract.address)
        )
    return extractors


def run_extractors(
    block: Block,
    extractors: Sequence[EventExtractor],
    *,
    max_workers: int = 1,
) -> list[EventBatch]:
    """Run every extractor against ``block``.

    Results are returned in extractor order regardless of completion order.
    The first extractor failure is re-raised.
    """
    if max_workers <= 1 or len(extractors) <= 1:
        return [extractor.extract(block) for extractor in extractors]

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="extractor") as pool:
        return list(pool.map(lambda extractor: extractor.extract(block), extractors))
