"""
Pipeline event models.

These events are immutable facts observed while a block moves through the
pipeline. They are consumed by loggers, recorders and metrics, never by the
pipeline itself.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ExtractionEvent:
    block_number: int
    extractor: str
    event_count: int


@dataclass(slots=True)
class StoreCommitEvent:
    block_number: int
    store: str

    created: int
    updated: int


@dataclass(slots=True)
class BlockProcessedEvent:
    block_number: int
    block_hash: str
    timestamp: int | None

    fills: int
    matches: int

    markets_changed: int
    traders_changed: int
    global_changed: bool

    table_changes: int
