"""Tests for schema contract loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from ctxmigrate.core.errors import ErrorCode, SchemaError
from ctxmigrate.schema.contract import load_contract, load_contracts


class TestBundledContracts:
    def test_loads_both_record_types(self) -> None:
        contracts = load_contracts()

        assert set(contracts) == {"blueprint", "command"}

    def test_blueprint_required_fields(self) -> None:
        contract = load_contract("blueprint")

        assert contract.required == [
            "id",
            "title",
            "description",
            "version",
            "category",
            "complexity",
            "scope",
            "audience",
            "maturity",
            "platforms",
        ]
        assert contract.fields["tags"].max_items == 10
        assert contract.fields["tags"].items is not None
        assert set(contract.platforms) == {"claude-code", "cursor", "github-copilot", "windsurf", "generic"}
        assert contract.relationships == ["requires", "suggests", "conflicts", "supersedes"]

    def test_command_extends_blueprint(self) -> None:
        contract = load_contract("command")

        assert contract.name == "command"
        assert "command" in contract.required
        assert "command" in contract.fields
        # Inherited from the base contract
        assert "tags" in contract.fields
        assert "windsurf" in contract.platforms


class TestConfiguredDirectory:
    def test_override_replaces_bundled_file(self, tmp_path: Path) -> None:
        (tmp_path / "blueprint.yaml").write_text("name: blueprint\nversion: '9.0.0'\nrequired: [id]\n")

        contract = load_contract("blueprint", tmp_path)

        assert contract.version == "9.0.0"
        assert contract.required == ["id"]

    def test_missing_override_falls_back_to_bundled(self, tmp_path: Path) -> None:
        assert load_contract("command", tmp_path).name == "command"

    def test_unknown_contract(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaError) as exc_info:
            load_contract("nope", tmp_path)

        assert exc_info.value.code is ErrorCode.SCHEMA_CONTRACT_NOT_FOUND

    @pytest.mark.parametrize(
        "text",
        [
            "name: blueprint\nversion: '1'\nunknownKey: true\n",
            "name: blueprint\nversion: '1'\nfields:\n  id:\n    pattern: '['\n",
            "- not\n- a mapping\n",
            "name: [broken\n",
        ],
    )
    def test_invalid_contracts(self, tmp_path: Path, text: str) -> None:
        (tmp_path / "blueprint.yaml").write_text(text)

        with pytest.raises(SchemaError) as exc_info:
            load_contract("blueprint", tmp_path)

        assert exc_info.value.code is ErrorCode.SCHEMA_CONTRACT_INVALID

    def test_circular_extends(self, tmp_path: Path) -> None:
        (tmp_path / "blueprint.yaml").write_text("extends: command\nname: blueprint\nversion: '1'\n")
        (tmp_path / "command.yaml").write_text("extends: blueprint\nname: command\nversion: '1'\n")

        with pytest.raises(SchemaError) as exc_info:
            load_contract("command", tmp_path)

        assert "circular" in exc_info.value.message
