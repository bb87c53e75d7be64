"""Pipeline configuration model.

Structured configuration for the block pipeline: which exchange contracts to
extract from, which change-record variant to export, and a few runtime knobs.
Loaded from JSON, validated with Pydantic.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from polymarket_orderbook.core.domain.chain import normalize_hex
from polymarket_orderbook.core.domain.types import Exchange

ExportVariant = Literal["normalized", "analytics", "both"]

CTF_EXCHANGE_ADDRESS = "4bfb41d5b3570defd03c39a9a4d8de6bd8b8982e"
NEG_RISK_EXCHANGE_ADDRESS = "c5d563a36ae78145c45a50134d48a1215220f80a"


class ContractConfig(BaseModel):
    """One exchange contract to extract events from."""

    name: str = Field(..., min_length=1)
    exchange: Exchange
    address: str = Field(..., min_length=40, max_length=42)

    model_config = ConfigDict(extra="forbid")

    @field_validator("address")
    @classmethod
    def _normalize_address(cls, v: str) -> str:
        address = normalize_hex(v)
        if len(address) != 40 or any(c not in "0123456789abcdef" for c in address):
            raise ValueError(f"address must be 20 bytes of hex, got {v!r}")
        return address


def default_contracts() -> list[ContractConfig]:
    return [
        ContractConfig(name="ctf_exchange", exchange="ctf", address=CTF_EXCHANGE_ADDRESS),
        ContractConfig(
            name="neg_risk_exchange",
            exchange="neg_risk",
            address=NEG_RISK_EXCHANGE_ADDRESS,
        ),
    ]


class PipelineConfig(BaseModel):
    """Structured-only pipeline configuration."""

    contracts: list[ContractConfig] = Field(default_factory=default_contracts)

    export_variant: ExportVariant = "normalized"
    top_traders_limit: int = Field(10, ge=0)

    # 1 runs extractors inline; >1 fans them out on a thread pool.
    extractor_workers: int = Field(1, ge=1)

    require_contiguous_blocks: bool = True

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> PipelineConfig:
        """Create a PipelineConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @model_validator(mode="after")
    def validate_contracts(self) -> PipelineConfig:
        """Validate internal consistency of the contract list."""
        if not self.contracts:
            raise ValueError("at least one contract is required")

        addresses = [c.address for c in self.contracts]
        if len(set(addresses)) != len(addresses):
            raise ValueError("contract addresses must be unique")

        names = [c.name for c in self.contracts]
        if len(set(names)) != len(names):
            raise ValueError("contract names must be unique")
        return self


def load_pipeline_config(path: str | Path) -> PipelineConfig:
    """Load a PipelineConfig from a JSON file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    return PipelineConfig.from_json_obj(json.loads(config_path.read_text(encoding="utf-8")))
