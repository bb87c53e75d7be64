"""Schema conformance tests for the sink-facing Pydantic models.

The change records and fill events are the only shapes external consumers
see. These tests check that the models accept what the JSON Schemas accept,
reject what the schemas reject, and that real pipeline output validates.
"""

# pylint: disable=line-too-long,missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from polymarket_orderbook.core.domain.types import (
    DatabaseChanges,
    OrderFilledEvent,
    TableChange,
)
from polymarket_orderbook.core.events.sinks.null_event_bus import NullEventBus
from polymarket_orderbook.pipeline.block_pipeline import BlockPipeline
from polymarket_orderbook.pipeline.config import PipelineConfig

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load JSON schema from the package schema directory.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    schema_path = root / "polymarket_orderbook" / "core" / "schemas" / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def dump_for_jsonschema(model: Any) -> dict:
    return model.model_dump(mode="json", exclude_none=True)


def pydantic_validate(model_type: Any, data: dict[str, Any]) -> Any:
    return TypeAdapter(model_type).validate_python(data)


def assert_pydantic_then_schema_ok(model_type: Any, data: dict[str, Any], schema: dict[str, Any]) -> dict:
    """
    Validate with Pydantic first, then validate the dumped instance with JSON Schema.
    """
    obj = pydantic_validate(model_type, data)
    instance = dump_for_jsonschema(obj)
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(model_type: Any, data: dict[str, Any], schema: dict[str, Any]):
    """
    If the schema rejects an input, Pydantic must reject it too.
    """
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        pydantic_validate(model_type, data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_shared_schemas() -> None:
    load_schema("common.schema.json")
    load_schema("table_change.schema.json")


@pytest.fixture(scope="module")
def table_change_schema() -> dict:
    return load_schema("table_change.schema.json")


@pytest.fixture(scope="module")
def database_changes_schema() -> dict:
    return load_schema("database_changes.schema.json")


@pytest.fixture(scope="module")
def order_filled_event_schema() -> dict:
    return load_schema("order_filled_event.schema.json")


def make_table_change(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "table": "market_orderbooks",
        "pk": "2",
        "ordinal": 4,
        "operation": "create",
        "columns": {"trades_quantity": "1", "collateral_volume": "100"},
    }
    data.update(overrides)
    return data


def make_order_filled(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "aa-bb",
        "exchange": "ctf",
        "transaction_hash": "aa",
        "timestamp": 1_700_000_000,
        "order_hash": "bb",
        "maker": "11" * 20,
        "taker": "22" * 20,
        "maker_asset_id": "2",
        "taker_asset_id": "3",
        "maker_amount_filled": "100",
        "taker_amount_filled": "200",
        "fee": "0",
        "block_number": 1,
        "side": "buy",
        "price": "0.5",
        "ordinal": 0,
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# TableChange
# ---------------------------------------------------------------------------

def test_table_change_valid_minimal(table_change_schema):
    assert_pydantic_then_schema_ok(TableChange, make_table_change(), table_change_schema)


def test_table_change_operation_enum(table_change_schema):
    assert_schema_invalid_but_pydantic_rejects(TableChange, make_table_change(operation="delete"), table_change_schema)


def test_table_change_columns_are_strings(table_change_schema):
    assert_schema_invalid_but_pydantic_rejects(TableChange, make_table_change(columns={"a": 1}), table_change_schema)


def test_table_change_rejects_additional_properties(table_change_schema):
    assert_schema_invalid_but_pydantic_rejects(TableChange, make_table_change(block=1), table_change_schema)


def test_table_change_pk_min_length(table_change_schema):
    assert_schema_invalid_but_pydantic_rejects(TableChange, make_table_change(pk=""), table_change_schema)


def test_table_change_ordinal_minimum(table_change_schema):
    assert_schema_invalid_but_pydantic_rejects(TableChange, make_table_change(ordinal=-1), table_change_schema)


# ---------------------------------------------------------------------------
# OrderFilledEvent
# ---------------------------------------------------------------------------

def test_order_filled_valid(order_filled_event_schema):
    instance = assert_pydantic_then_schema_ok(OrderFilledEvent, make_order_filled(), order_filled_event_schema)
    assert instance["event_kind"] == "order_filled"


def test_order_filled_exchange_enum(order_filled_event_schema):
    assert_schema_invalid_but_pydantic_rejects(OrderFilledEvent, make_order_filled(exchange="binance"), order_filled_event_schema)


def test_order_filled_side_enum(order_filled_event_schema):
    assert_schema_invalid_but_pydantic_rejects(OrderFilledEvent, make_order_filled(side="long"), order_filled_event_schema)


def test_order_filled_missing_ordinal(order_filled_event_schema):
    data = make_order_filled()
    del data["ordinal"]
    assert_schema_invalid_but_pydantic_rejects(OrderFilledEvent, data, order_filled_event_schema)


# ---------------------------------------------------------------------------
# DatabaseChanges (real pipeline output)
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("variant", ["normalized", "analytics", "both"])
def test_pipeline_changes_validate(variant, chain, database_changes_schema):
    pipeline = BlockPipeline(PipelineConfig(export_variant=variant), NullEventBus())
    block = chain.block(
        1,
        chain.tx(chain.fill_log(ordinal=0, fee=2), chain.matched_log(ordinal=1)),
        chain.tx(chain.fill_log(ordinal=2, address=chain.neg_risk, maker_asset_id=7, taker_asset_id=4)),
    )

    changes = pipeline.process_block(block).changes

    jsonschema_validate(instance=dump_for_jsonschema(changes), schema=database_changes_schema, registry=SCHEMA_REGISTRY)
    assert DatabaseChanges.model_validate_json(changes.model_dump_json()) == changes


def test_database_changes_rejects_bad_change(database_changes_schema):
    data = {"block_number": 1, "table_changes": [make_table_change(operation="upsert")]}
    assert_schema_invalid_but_pydantic_rejects(DatabaseChanges, data, database_changes_schema)
