"""Merge same-kind event batches from several contracts.

The merge is the synchronization point of a block: it sees the full output of
every extractor and re-establishes the block's canonical log order. Sorting
by ordinal is what makes the result independent of which extractor finished
first or which batch was passed first.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from polymarket_orderbook.core.domain.errors import InputContractError
from polymarket_orderbook.core.domain.types import OrderFilledEvents, OrdersMatchedEvents

BatchT = TypeVar("BatchT", OrderFilledEvents, OrdersMatchedEvents)


def merge_batches(first: BatchT, second: BatchT) -> BatchT:
    """Concatenate two batches and stable-sort the events by ordinal."""
    if type(first) is not type(second):
        raise InputContractError(
            f"cannot merge {type(first).__name__} with {type(second).__name__}"
        )
    if first.block_number != second.block_number:
        raise InputContractError(
            f"cannot merge batches of blocks {first.block_number} and {second.block_number}"
        )
    if first.block_hash != second.block_hash:
        raise InputContractError(
            f"cannot merge batches of competing blocks at height {first.block_number}: "
            f"{first.block_hash} != {second.block_hash}"
        )

    # sorted() is stable: equal ordinals keep their input order.
    events = sorted([*first.events, *second.events], key=lambda e: e.ordinal)

    return first.model_copy(update={"events": events})


def merge_all(batches: Sequence[BatchT]) -> BatchT:
    """Left-fold :func:`merge_batches` over one batch per contract."""
    if not batches:
        raise InputContractError("merge_all() needs at least one batch")

    merged = batches[0]
    for batch in batches[1:]:
        merged = merge_batches(merged, batch)

    # A single batch is re-sorted as well so the output order never depends
    # on how the extractor walked the block.
    if len(batches) == 1:
        merged = merged.model_copy(
            update={"events": sorted(merged.events, key=lambda e: e.ordinal)}
        )
    return merged
