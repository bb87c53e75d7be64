"""Shared builders for semantic tests.

Blocks are assembled from ABI-encoded logs so the tests exercise the real
decoders, not hand-built events.
"""

from __future__ import annotations

import itertools

import pytest
from eth_abi import encode

from polymarket_orderbook.core.decoding.abi import ORDER_FILLED_TOPIC, ORDERS_MATCHED_TOPIC
from polymarket_orderbook.core.domain.chain import Block, CallTrace, Log, TransactionTrace
from polymarket_orderbook.core.domain.numeric import determine_trade_side
from polymarket_orderbook.core.domain.types import OrderFilledEvent, OrderFilledEvents
from polymarket_orderbook.core.events.sinks.null_event_bus import NullEventBus
from polymarket_orderbook.pipeline.block_pipeline import BlockPipeline
from polymarket_orderbook.pipeline.config import (
    CTF_EXCHANGE_ADDRESS,
    NEG_RISK_EXCHANGE_ADDRESS,
    PipelineConfig,
)

# 2023-11-14T22:13:20Z, day 19675.
DEFAULT_TIMESTAMP = 1_700_000_000

MAKER = "11" * 20
TAKER = "22" * 20


def _address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address


class ChainBuilder:
    """Build decoded blocks with ABI-encoded exchange logs."""

    ctf = CTF_EXCHANGE_ADDRESS
    neg_risk = NEG_RISK_EXCHANGE_ADDRESS

    def __init__(self) -> None:
        self._hashes = itertools.count(1)

    def _next_hash(self) -> str:
        return f"{next(self._hashes):064x}"

    def fill_log(
        self,
        *,
        ordinal: int,
        address: str = CTF_EXCHANGE_ADDRESS,
        order_hash: str | None = None,
        maker: str = MAKER,
        taker: str = TAKER,
        maker_asset_id: int = 2,
        taker_asset_id: int = 3,
        making: int = 100,
        taking: int = 100,
        fee: int = 0,
    ) -> Log:
        return Log(
            address="0x" + address,
            topics=[
                "0x" + ORDER_FILLED_TOPIC,
                "0x" + (order_hash or self._next_hash()),
                _address_topic(maker),
                _address_topic(taker),
            ],
            data="0x" + encode(
                ["uint256"] * 5,
                [maker_asset_id, taker_asset_id, making, taking, fee],
            ).hex(),
            index=0,
            ordinal=ordinal,
        )

    def matched_log(
        self,
        *,
        ordinal: int,
        address: str = CTF_EXCHANGE_ADDRESS,
        taker_order_hash: str | None = None,
        taker_order_maker: str = MAKER,
        maker_asset_id: int = 2,
        taker_asset_id: int = 3,
        making: int = 100,
        taking: int = 100,
    ) -> Log:
        return Log(
            address="0x" + address,
            topics=[
                "0x" + ORDERS_MATCHED_TOPIC,
                "0x" + (taker_order_hash or self._next_hash()),
                _address_topic(taker_order_maker),
            ],
            data="0x" + encode(
                ["uint256"] * 4,
                [maker_asset_id, taker_asset_id, making, taking],
            ).hex(),
            index=0,
            ordinal=ordinal,
        )

    def tx(self, *logs: Log, tx_hash: str | None = None, reverted: bool = False) -> TransactionTrace:
        indexed = [log.model_copy(update={"index": i}) for i, log in enumerate(logs)]
        return TransactionTrace(
            hash="0x" + (tx_hash or self._next_hash()),
            index=0,
            calls=[CallTrace(index=0, state_reverted=reverted, logs=indexed)],
        )

    def block(
        self,
        number: int,
        *txs: TransactionTrace,
        timestamp: int | None = DEFAULT_TIMESTAMP,
        block_hash: str | None = None,
    ) -> Block:
        return Block(
            number=number,
            hash="0x" + (block_hash or f"{number:064x}"),
            timestamp_seconds=timestamp,
            transaction_traces=[t.model_copy(update={"index": i}) for i, t in enumerate(txs)],
        )


class FillFactory:
    """Build OrderFilled events and batches directly, bypassing extraction."""

    def event(
        self,
        ordinal: int,
        *,
        block_number: int = 1,
        timestamp: int = DEFAULT_TIMESTAMP,
        maker: str = MAKER,
        taker: str = TAKER,
        maker_asset_id: str = "2",
        taker_asset_id: str = "3",
        amount: str = "100",
        fee: str = "0",
    ) -> OrderFilledEvent:
        return OrderFilledEvent(
            id=f"{block_number:x}{ordinal:x}-{ordinal}",
            exchange="ctf",
            transaction_hash=f"{block_number:x}{ordinal:x}",
            timestamp=timestamp,
            order_hash=f"{ordinal:064x}",
            maker=maker,
            taker=taker,
            maker_asset_id=maker_asset_id,
            taker_asset_id=taker_asset_id,
            maker_amount_filled=amount,
            taker_amount_filled=amount,
            fee=fee,
            block_number=block_number,
            side=determine_trade_side(maker_asset_id, taker_asset_id),
            price="1",
            ordinal=ordinal,
        )

    def batch(
        self,
        block_number: int,
        *events: OrderFilledEvent,
        timestamp: int = DEFAULT_TIMESTAMP,
    ) -> OrderFilledEvents:
        return OrderFilledEvents(
            block_number=block_number,
            block_hash=f"{block_number:064x}",
            timestamp=timestamp,
            events=list(events),
        )


@pytest.fixture
def chain() -> ChainBuilder:
    return ChainBuilder()


@pytest.fixture
def fills() -> FillFactory:
    return FillFactory()


@pytest.fixture
def pipeline() -> BlockPipeline:
    return BlockPipeline(PipelineConfig(), NullEventBus())
