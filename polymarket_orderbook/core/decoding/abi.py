"""ABI decoders for the exchange events the pipeline consumes.

Both exchange contracts (CTF Exchange and Neg Risk CTF Exchange) emit the same
two events with identical layouts, so one decoder per event serves both.
Indexed parameters are read from topics[1:], the rest is ABI-decoded from the
data payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from polymarket_orderbook.core.domain.chain import Log, normalize_hex

LOGGER = logging.getLogger(__name__)

ORDER_FILLED_SIGNATURE = (
    "OrderFilled(bytes32,address,address,uint256,uint256,uint256,uint256,uint256)"
)
ORDERS_MATCHED_SIGNATURE = "OrdersMatched(bytes32,address,uint256,uint256,uint256,uint256)"


def event_topic(signature: str) -> str:
    """Return topic-0 for an event signature (lower-case hex, no prefix)."""
    return normalize_hex(Web3.keccak(text=signature).hex())


ORDER_FILLED_TOPIC = event_topic(ORDER_FILLED_SIGNATURE)
ORDERS_MATCHED_TOPIC = event_topic(ORDERS_MATCHED_SIGNATURE)


def topic_to_address(topic: str) -> str:
    """Addresses are right-aligned in a 32-byte topic."""
    return topic[-40:]


@dataclass(frozen=True, slots=True)
class DecodedOrderFilled:
    order_hash: str
    maker: str
    taker: str
    maker_asset_id: int
    taker_asset_id: int
    maker_amount_filled: int
    taker_amount_filled: int
    fee: int


@dataclass(frozen=True, slots=True)
class DecodedOrdersMatched:
    taker_order_hash: str
    taker_order_maker: str
    maker_asset_id: int
    taker_asset_id: int
    maker_amount_filled: int
    taker_amount_filled: int


DecodedT = TypeVar("DecodedT")


class AbiEventDecoder(Generic[DecodedT]):
    """Match a log by topic-0 and decode its non-indexed arguments."""

    signature: str = ""
    indexed_count: int = 0
    data_types: tuple[str, ...] = ()

    def __init__(self) -> None:
        self.topic = event_topic(self.signature)

    def matches(self, log: Log) -> bool:
        return (
            len(log.topics) == self.indexed_count + 1
            and log.topics[0] == self.topic
        )

    def decode(self, log: Log) -> DecodedT | None:
        if not self.matches(log):
            return None

        try:
            values = abi_decode(list(self.data_types), bytes.fromhex(log.data))
        except (DecodingError, ValueError) as exc:
            # Topic matched but the payload is malformed: treat as a mismatch.
            LOGGER.warning(
                "Undecodable %s payload skipped",
                self.signature.split("(")[0],
                extra={"log_ordinal": log.ordinal, "address": log.address, "error": str(exc)},
            )
            return None

        return self._build(log.topics[1:], values)

    def _build(self, indexed: list[str], values: tuple[Any, ...]) -> DecodedT:
        raise NotImplementedError("_build() must be implemented by subclasses")


class OrderFilledDecoder(AbiEventDecoder[DecodedOrderFilled]):
    signature = ORDER_FILLED_SIGNATURE
    indexed_count = 3
    data_types = ("uint256", "uint256", "uint256", "uint256", "uint256")

    def _build(self, indexed: list[str], values: tuple[Any, ...]) -> DecodedOrderFilled:
        order_hash, maker, taker = indexed
        maker_asset_id, taker_asset_id, making, taking, fee = values
        return DecodedOrderFilled(
            order_hash=order_hash,
            maker=topic_to_address(maker),
            taker=topic_to_address(taker),
            maker_asset_id=int(maker_asset_id),
            taker_asset_id=int(taker_asset_id),
            maker_amount_filled=int(making),
            taker_amount_filled=int(taking),
            fee=int(fee),
        )


class OrdersMatchedDecoder(AbiEventDecoder[DecodedOrdersMatched]):
    signature = ORDERS_MATCHED_SIGNATURE
    indexed_count = 2
    data_types = ("uint256", "uint256", "uint256", "uint256")

    def _build(self, indexed: list[str], values: tuple[Any, ...]) -> DecodedOrdersMatched:
        taker_order_hash, taker_order_maker = indexed
        maker_asset_id, taker_asset_id, making, taking = values
        return DecodedOrdersMatched(
            taker_order_hash=taker_order_hash,
            taker_order_maker=topic_to_address(taker_order_maker),
            maker_asset_id=int(maker_asset_id),
            taker_asset_id=int(taker_asset_id),
            maker_amount_filled=int(making),
            taker_amount_filled=int(taking),
        )
