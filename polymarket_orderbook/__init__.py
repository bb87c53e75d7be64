"""Public API for the polymarket_orderbook package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Input model
# ----------------------------------------------------------------------
from polymarket_orderbook.core.domain.chain import Block, CallTrace, Log, TransactionTrace

# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------
from polymarket_orderbook.core.domain.errors import (
    BlockSequenceError,
    InputContractError,
    PipelineError,
)

# ----------------------------------------------------------------------
# Domain types
# ----------------------------------------------------------------------
from polymarket_orderbook.core.domain.types import (
    DatabaseChanges,
    GlobalOrderbookStats,
    MarketOrderbook,
    OrderbookAnalytics,
    OrderFilledEvent,
    OrdersMatchedEvent,
    TableChange,
    TraderAccount,
)

# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------
from polymarket_orderbook.core.events.event_bus import EventBus
from polymarket_orderbook.core.projection.block_output import BlockOutput

# ----------------------------------------------------------------------
# Stores
# ----------------------------------------------------------------------
from polymarket_orderbook.core.store.delta_store import DeltaStore, StoreDelta

# ----------------------------------------------------------------------
# Pipeline and config
# ----------------------------------------------------------------------
from polymarket_orderbook.pipeline.block_pipeline import BlockPipeline
from polymarket_orderbook.pipeline.config import (
    ContractConfig,
    PipelineConfig,
    load_pipeline_config,
)

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Pipeline
    "BlockPipeline",
    "BlockOutput",
    "PipelineConfig",
    "ContractConfig",
    "load_pipeline_config",
    "EventBus",

    # Input
    "Block",
    "TransactionTrace",
    "CallTrace",
    "Log",

    # Domain
    "OrderFilledEvent",
    "OrdersMatchedEvent",
    "MarketOrderbook",
    "TraderAccount",
    "GlobalOrderbookStats",
    "OrderbookAnalytics",
    "TableChange",
    "DatabaseChanges",

    # Stores
    "DeltaStore",
    "StoreDelta",

    # Errors
    "PipelineError",
    "InputContractError",
    "BlockSequenceError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("polymarket-orderbook")
except PackageNotFoundError:
    __version__ = "0.0.0"
