"""
Semantic test: replay runner.

Invariant:
The runner writes one DatabaseChanges line per input block, in input order,
and records pipeline events when asked to. A failing block stops the run
with the error, after the earlier blocks were written.
"""

from __future__ import annotations

import json

import pytest

from polymarket_orderbook.core.domain.errors import BlockSequenceError
from polymarket_orderbook.core.domain.types import DatabaseChanges
from polymarket_orderbook.pipeline.runtime.entrypoint import main


def _write_blocks(path, blocks) -> None:
    path.write_text(
        "\n".join(b.model_dump_json() for b in blocks) + "\n\n",
        encoding="utf-8",
    )


def test_replay_writes_changes_and_events(tmp_path, chain, monkeypatch) -> None:
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)
    blocks_path = tmp_path / "blocks.jsonl"
    changes_path = tmp_path / "out" / "changes.jsonl"
    events_path = tmp_path / "out" / "events.jsonl"
    _write_blocks(
        blocks_path,
        [
            chain.block(7, chain.tx(chain.fill_log(ordinal=0))),
            chain.block(8),
        ],
    )

    main(
        [
            "--blocks", str(blocks_path),
            "--changes-out", str(changes_path),
            "--events-out", str(events_path),
            "--variant", "analytics",
            "--log-level", "WARNING",
        ]
    )

    lines = changes_path.read_text(encoding="utf-8").splitlines()
    changes = [DatabaseChanges.model_validate_json(line) for line in lines]
    assert [c.block_number for c in changes] == [7, 8]
    assert "market_analytics" in changes[0].tables()
    assert changes[1].table_changes == []

    events = [json.loads(line) for line in events_path.read_text(encoding="utf-8").splitlines()]
    processed = [e for e in events if e["type"] == "BlockProcessedEvent"]
    assert [e["block_number"] for e in processed] == [7, 8]
    assert processed[0]["fills"] == 1


def test_replay_stops_on_sequence_error(tmp_path, chain, monkeypatch) -> None:
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)
    blocks_path = tmp_path / "blocks.jsonl"
    changes_path = tmp_path / "changes.jsonl"
    _write_blocks(blocks_path, [chain.block(1), chain.block(3)])

    with pytest.raises(BlockSequenceError):
        main(["--blocks", str(blocks_path), "--changes-out", str(changes_path)])

    assert len(changes_path.read_text(encoding="utf-8").splitlines()) == 1


def test_missing_blocks_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        main(
            [
                "--blocks", str(tmp_path / "nope.jsonl"),
                "--changes-out", str(tmp_path / "changes.jsonl"),
            ]
        )
