from __future__ import annotations

import argparse
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence

from polymarket_orderbook.core.domain.chain import Block
from polymarket_orderbook.core.events.event_bus import EventBus
from polymarket_orderbook.core.events.sinks.file_recorder import FileRecorderSink
from polymarket_orderbook.core.events.sinks.sink_logging import LoggingEventSink
from polymarket_orderbook.pipeline.block_pipeline import BlockPipeline
from polymarket_orderbook.pipeline.config import PipelineConfig, load_pipeline_config
from polymarket_orderbook.pipeline.runtime.context import ReplayContext
from polymarket_orderbook.pipeline.runtime.prometheus_metrics import PrometheusMetricsClient

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ReplaySummary:
    blocks: int = 0
    fills: int = 0
    matches: int = 0
    table_changes: int = 0
    last_block_number: int | None = None


def iter_blocks(path: Path) -> Iterator[Block]:
    """Yield one Block per non-empty line of a JSON-lines file."""
    if not path.exists():
        raise FileNotFoundError(path)

    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            yield Block.model_validate(json.loads(line))


def replay(
    *,
    ctx: ReplayContext,
    config: PipelineConfig,
    event_bus: EventBus,
    summary: ReplaySummary | None = None,
) -> ReplaySummary:
    """Run every block of ``ctx.blocks_path`` and write one changes line per block.

    The first failing block stops the replay; the changes of every block
    before it are already on disk and counted in ``summary``.
    """
    pipeline = BlockPipeline(config, event_bus)
    if summary is None:
        summary = ReplaySummary()

    ctx.changes_path.parent.mkdir(parents=True, exist_ok=True)
    with ctx.changes_path.open("w", encoding="utf-8") as out:
        for block in iter_blocks(ctx.blocks_path):
            output = pipeline.process_block(block)

            out.write(output.changes.model_dump_json() + "\n")

            summary.blocks += 1
            summary.fills += output.fill_count
            summary.matches += len(output.orders_matched.events)
            summary.table_changes += len(output.changes.table_changes)
            summary.last_block_number = block.number

    LOGGER.info(
        "Replay finished",
        extra={
            "run_id": ctx.run_id,
            "blocks": summary.blocks,
            "fills": summary.fills,
            "last_block_number": summary.last_block_number,
        },
    )
    return summary


def _push_metrics(ctx: ReplayContext, summary: ReplaySummary, status: str) -> None:
    metrics = PrometheusMetricsClient()
    if not metrics.is_enabled():
        return

    try:
        labels = {**ctx.metrics_labels, "status": status}

        metrics.push_gauge(
            name="orderbook_replay_blocks_processed",
            value=float(summary.blocks),
            labels=labels,
        )

        metrics.push_gauge(
            name="orderbook_replay_order_fills",
            value=float(summary.fills),
            labels=labels,
        )

        if summary.last_block_number is not None:
            metrics.push_gauge(
                name="orderbook_replay_last_block_number",
                value=float(summary.last_block_number),
                labels=labels,
            )

        metrics.push_all(job="orderbook_replay")

    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Prometheus push failed")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay decoded blocks through the orderbook pipeline"
    )

    parser.add_argument(
        "--blocks",
        type=Path,
        required=True,
        help="JSON-lines file with one decoded block per line, in chain order.",
    )

    parser.add_argument(
        "--changes-out",
        type=Path,
        required=True,
        help="Output JSON-lines file, one DatabaseChanges object per block.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to pipeline JSON config. Defaults to the built-in contracts.",
    )

    parser.add_argument(
        "--events-out",
        type=Path,
        default=None,
        help="Optional JSON-lines file recording pipeline events.",
    )

    parser.add_argument(
        "--variant",
        choices=("normalized", "analytics", "both"),
        default=None,
        help="Override the config's export variant.",
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Run identifier used in logs and metrics labels.",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Root logger level (DEBUG, INFO, WARNING, ...).",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ------------------------------------------------------------------
    # Load config
    # ------------------------------------------------------------------

    config = load_pipeline_config(args.config) if args.config is not None else PipelineConfig()
    if args.variant is not None:
        config = config.model_copy(update={"export_variant": args.variant})

    ctx = ReplayContext(
        run_id=args.run_id or uuid.uuid4().hex,
        started_at=datetime.now(timezone.utc),
        blocks_path=args.blocks,
        changes_path=args.changes_out,
        events_path=args.events_out,
        config_path=args.config,
    )

    event_bus = EventBus([LoggingEventSink(logging.getLogger("polymarket_orderbook.events"))])
    if ctx.events_path is not None:
        event_bus.register(FileRecorderSink(ctx.events_path))

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    summary = ReplaySummary()
    status = "success"
    try:
        replay(ctx=ctx, config=config, event_bus=event_bus, summary=summary)
    except Exception:
        status = "failed"
        raise
    finally:
        event_bus.close()
        _push_metrics(ctx, summary, status)


if __name__ == "__main__":
    main()
