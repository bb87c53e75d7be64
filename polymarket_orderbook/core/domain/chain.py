"""Decoded block models handed in by the block source.

These mirror the subset of an Ethereum block trace the extractors need:
ordered transactions, each with ordered call traces, each with ordered logs.
Every log carries its block-global ordinal, which is the only ordering key
used downstream.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_hex(value: str) -> str:
    """Lower-case hex without a ``0x`` prefix."""
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    return text


class Log(BaseModel):
    address: str = Field(..., min_length=1)
    topics: list[str] = Field(default_factory=list)
    data: str = ""
    index: int = Field(..., ge=0, description="Position of the log within its transaction.")
    ordinal: int = Field(..., ge=0, description="Block-global position of the log.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("address", "data")
    @classmethod
    def _normalize_hex_field(cls, v: str) -> str:
        return normalize_hex(v)

    @field_validator("topics")
    @classmethod
    def _normalize_topics(cls, v: list[str]) -> list[str]:
        return [normalize_hex(t) for t in v]


class CallTrace(BaseModel):
    index: int = Field(..., ge=0)
    state_reverted: bool = False
    logs: list[Log] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class TransactionTrace(BaseModel):
    hash: str = Field(..., min_length=1)
    index: int = Field(..., ge=0)
    calls: list[CallTrace] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("hash")
    @classmethod
    def _normalize_hash(cls, v: str) -> str:
        return normalize_hex(v)


class Block(BaseModel):
    number: int = Field(..., ge=0)
    hash: str = Field(..., min_length=1)
    # Nullable here so an absent timestamp is reported by the extractors as an
    # input contract violation for this block, not as a parse failure.
    timestamp_seconds: int | None = Field(default=None, ge=0)
    transaction_traces: list[TransactionTrace] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("hash")
    @classmethod
    def _normalize_hash(cls, v: str) -> str:
        return normalize_hex(v)

    def iter_logs(self) -> Iterator[tuple[TransactionTrace, Log]]:
        """Yield ``(transaction, log)`` in canonical order, skipping reverted calls."""
        for trx in self.transaction_traces:
            for call in trx.calls:
                if call.state_reverted:
                    continue
                for log in call.logs:
                    yield trx, log
