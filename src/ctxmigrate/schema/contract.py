"""Declarative schema contracts loaded from YAML.

A contract names required header fields, per-field rules (type, enum,
pattern, lengths, numeric range, array constraints, nested properties),
per-platform field definitions and the relationship fields whose
invariants are checked. Bundled contracts live next to this module in
``contracts/<name>.yaml``; a configured directory overrides them per file.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ctxmigrate.core.errors import SchemaError

BUNDLED_CONTRACTS_DIR = Path(__file__).parent / "contracts"
CONTRACT_NAMES = ("blueprint", "command")

FieldType = Literal["string", "integer", "number", "boolean", "array", "object"]


class FieldRule(BaseModel):
    """Constraints for one value. Keys mirror JSON-Schema spelling."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: FieldType | None = None
    enum: list[Any] | None = None
    pattern: str | None = None
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    minimum: float | None = None
    maximum: float | None = None
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")
    unique_items: bool = Field(default=False, alias="uniqueItems")
    items: FieldRule | None = None
    properties: dict[str, FieldRule] | None = None

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v


class PlatformRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    required: list[str] = Field(default_factory=list)
    fields: dict[str, FieldRule] = Field(default_factory=dict)


class SchemaContract(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    version: str
    required: list[str] = Field(default_factory=list)
    fields: dict[str, FieldRule] = Field(default_factory=dict)
    platforms: dict[str, PlatformRule] = Field(default_factory=dict)
    generic_platform: PlatformRule = Field(default_factory=PlatformRule, alias="genericPlatform")
    relationships: list[str] = Field(
        default_factory=lambda: ["requires", "suggests", "conflicts", "supersedes"]
    )


def _contract_path(name: str, directory: Path | None) -> Path:
    if directory is not None:
        candidate = directory / f"{name}.yaml"
        if candidate.exists():
            return candidate
    return BUNDLED_CONTRACTS_DIR / f"{name}.yaml"


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_raw(name: str, directory: Path | None, chain: tuple[str, ...] = ()) -> dict[str, Any]:
    if name in chain:
        raise SchemaError.contract_invalid(name, f"circular extends: {' -> '.join((*chain, name))}")
    path = _contract_path(name, directory)
    if not path.exists():
        raise SchemaError.contract_not_found(name, str(path))
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SchemaError.contract_invalid(name, str(e)) from e
    if not isinstance(data, dict):
        raise SchemaError.contract_invalid(name, "top-level document must be a mapping")

    base_name = data.pop("extends", None)
    if base_name is None:
        return data
    # Lists (e.g. required) in the extending contract replace the base's
    return _merge(_load_raw(str(base_name), directory, (*chain, name)), data)


def load_contract(name: str, directory: Path | None = None) -> SchemaContract:
    """Load one contract by name, resolving ``extends``.

    Raises:
        SchemaError: Contract missing, unparseable or structurally invalid.
    """
    data = _load_raw(name, directory)
    try:
        return SchemaContract.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err["loc"])
        raise SchemaError.contract_invalid(name, f"{loc}: {err['msg']}") from e


def load_contracts(directory: Path | None = None) -> dict[str, SchemaContract]:
    """Load every known contract, keyed by record type."""
    return {name: load_contract(name, directory) for name in CONTRACT_NAMES}
