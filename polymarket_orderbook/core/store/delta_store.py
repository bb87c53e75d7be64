"""Keyed snapshot store with per-block delta tracking.

A store keeps only the latest value per key. Writes made while a block is
being processed are held as pending deltas ``(old, new)`` and become the
committed snapshot on :meth:`DeltaStore.commit`. A failed block is undone with
:meth:`DeltaStore.rollback`, which leaves the committed snapshot exactly as
the previous block left it.

Values are treated as immutable once written: aggregators copy before they
modify, and readers must not mutate what they get back.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, Literal, Mapping, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StoreDelta(Generic[T]):
    """One key written during one block."""

    key: str
    ordinal: int
    old_value: T | None
    new_value: T

    @property
    def operation(self) -> Literal["create", "update"]:
        return "create" if self.old_value is None else "update"


class DeltaStore(Generic[T]):
    """Latest-value-per-key store that records what each block changed."""

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("store name must be non-empty")
        self.name = name
        self._committed: dict[str, T] = {}
        # Insertion order is first-write order within the block.
        self._pending: dict[str, StoreDelta[T]] = {}

    def __len__(self) -> int:
        return len(self._committed)

    def __contains__(self, key: object) -> bool:
        return key in self._pending or key in self._committed

    # ---- Reads ----
    def get_last(self, key: str) -> T | None:
        """Return the latest value for ``key``, including this block's writes."""
        pending = self._pending.get(key)
        if pending is not None:
            return pending.new_value
        return self._committed.get(key)

    def get_committed(self, key: str) -> T | None:
        """Return the value as of the end of the previous block."""
        return self._committed.get(key)

    def keys(self) -> Iterator[str]:
        return iter(self._committed)

    # ---- Writes ----
    def set(self, ordinal: int, key: str, value: T) -> None:
        """Write ``value`` and record the delta for this block.

        Repeated writes of one key within a block collapse into a single delta
        whose old value stays the pre-block snapshot.
        """
        if ordinal < 0:
            raise ValueError("ordinal must be >= 0")

        existing = self._pending.get(key)
        old_value = existing.old_value if existing is not None else self._committed.get(key)

        self._pending[key] = StoreDelta(
            key=key,
            ordinal=ordinal,
            old_value=old_value,
            new_value=value,
        )

    def set_if_not_exists(self, ordinal: int, key: str, value: T) -> bool:
        """Write only when ``key`` has never been written. Returns True if written."""
        if key in self:
            return False
        self.set(ordinal, key, value)
        return True

    # ---- Block lifecycle ----
    def has_pending(self) -> bool:
        return bool(self._pending)

    def deltas(self) -> list[StoreDelta[T]]:
        """Return this block's deltas in first-write order."""
        return list(self._pending.values())

    def commit(self) -> list[StoreDelta[T]]:
        """Make this block's writes the committed snapshot and return its deltas."""
        deltas = list(self._pending.values())
        for delta in deltas:
            self._committed[delta.key] = delta.new_value
        self._pending.clear()
        return deltas

    def rollback(self) -> None:
        """Discard this block's writes."""
        if self._pending:
            LOGGER.warning(
                "Rolling back %d pending writes in store %s",
                len(self._pending),
                self.name,
            )
        self._pending.clear()

    # ---- Host persistence ----
    def snapshot(self) -> dict[str, T]:
        """Deep copy of the committed key -> value map."""
        return copy.deepcopy(self._committed)

    def load(self, values: Mapping[str, T]) -> None:
        """Replace the committed snapshot, e.g. when resuming from persisted state."""
        if self._pending:
            raise RuntimeError(f"store {self.name} has uncommitted writes")
        self._committed = copy.deepcopy(dict(values))


def detach(deltas: Iterable[StoreDelta[T]]) -> list[StoreDelta[T]]:
    """Deep-copy deltas so callers can hold them without sharing store values."""
    return [
        StoreDelta(
            key=d.key,
            ordinal=d.ordinal,
            old_value=copy.deepcopy(d.old_value),
            new_value=copy.deepcopy(d.new_value),
        )
        for d in deltas
    ]
