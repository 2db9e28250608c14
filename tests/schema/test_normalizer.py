"""Tests for schema migration and validation of record headers."""

from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Any

import pytest

from ctxmigrate.schema.normalizer import SchemaNormalizer, format_date


@pytest.fixture(scope="module")
def normalizer() -> SchemaNormalizer:
    return SchemaNormalizer()


def _legacy() -> dict[str, Any]:
    return {
        "id": "python-style",
        "title": "Python Style",
        "description": "Python style rules for every service.",
        "version": "1.0.0",
        "category": "language",
        "platforms": {"cursor": True},
    }


def _canonical(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": "python-style",
        "type": "blueprint",
        "title": "Python Style",
        "description": "Python style rules for every service.",
        "version": "1.0.0",
        "category": "language",
        "complexity": "simple",
        "scope": "file",
        "audience": "developer",
        "maturity": "stable",
        "platforms": {"cursor": {"compatible": True}},
    }
    record.update(overrides)
    return record


class TestIsCanonical:
    def test_canonical(self, normalizer: SchemaNormalizer) -> None:
        assert normalizer.is_canonical(_canonical())

    def test_missing_version_field(self, normalizer: SchemaNormalizer) -> None:
        record = _canonical()
        del record["maturity"]

        assert not normalizer.is_canonical(record)

    @pytest.mark.parametrize("platforms", [{}, ["cursor"], {"cursor": True}, None])
    def test_legacy_platforms(self, normalizer: SchemaNormalizer, platforms: Any) -> None:
        assert not normalizer.is_canonical(_canonical(platforms=platforms))


class TestMigrateLegacyRecord:
    def test_legacy_record_gets_exactly_five_changes(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate(_legacy(), "Use black for formatting.")

        assert not outcome.skipped
        assert len(outcome.changes) == 5
        record = outcome.record
        assert record["complexity"] == "simple"
        assert record["scope"] == "file"
        assert record["audience"] == "developer"
        assert record["maturity"] == "stable"
        assert record["platforms"] == {"cursor": {"compatible": True}}
        assert outcome.changes == (
            "Added complexity: simple",
            "Added scope: file",
            "Added audience: developer",
            "Added maturity: stable",
            "Converted legacy platform config: cursor",
        )
        assert normalizer.validate(record).valid

    def test_input_not_mutated(self, normalizer: SchemaNormalizer) -> None:
        legacy = _legacy()
        before = copy.deepcopy(legacy)

        normalizer.migrate(legacy)

        assert legacy == before

    def test_second_run_is_skipped(self, normalizer: SchemaNormalizer) -> None:
        first = normalizer.migrate(_legacy(), "Use black.")

        second = normalizer.migrate(first.record, "Use black.")

        assert second.skipped
        assert second.changes == ()
        assert second.record == first.record

    def test_forced_rerun_changes_nothing(self, normalizer: SchemaNormalizer) -> None:
        first = normalizer.migrate(_legacy(), "Use black.")

        forced = normalizer.migrate(first.record, "Use black.", force=True)

        assert not forced.skipped
        assert forced.changes == ()
        assert forced.record == first.record


class TestMigrateLegacyForms:
    def test_name_backfills_id_and_title(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate({"name": "API Design Guide"})

        assert outcome.record["id"] == "api-design-guide"
        assert outcome.record["title"] == "API Design Guide"
        assert "Added id from name: api-design-guide" in outcome.changes

    def test_missing_version_defaulted(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate({"id": "x"})

        assert outcome.record["version"] == "1.0.0"
        assert outcome.record["maturity"] == "stable"

    @pytest.mark.parametrize(("version", "expected"), [(2, "2.0.0"), (1.5, "1.5.0")])
    def test_numeric_version(self, normalizer: SchemaNormalizer, version: Any, expected: str) -> None:
        assert normalizer.migrate({"version": version}).record["version"] == expected

    def test_zero_major_is_beta(self, normalizer: SchemaNormalizer) -> None:
        assert normalizer.migrate({"version": "0.4.0"}).record["maturity"] == "beta"

    def test_platform_list(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate(_canonical(platforms=["cursor", "windsurf"]))

        assert outcome.record["platforms"] == {
            "cursor": {"compatible": True},
            "windsurf": {"compatible": True},
        }
        assert outcome.changes == ("Converted platforms list to map: cursor, windsurf",)

    def test_missing_platforms_get_universal_entry(self, normalizer: SchemaNormalizer) -> None:
        record = _canonical()
        del record["platforms"]

        outcome = normalizer.migrate(record)

        assert outcome.record["platforms"] == {"claude-code": {"compatible": True}}

    def test_mapping_without_compatible(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate(_legacy() | {"platforms": {"cursor": {"activation": "always"}, "windsurf": False}})

        assert outcome.record["platforms"] == {
            "cursor": {"compatible": True, "activation": "always"},
            "windsurf": {"compatible": False},
        }
        assert "Converted legacy platform config: cursor, windsurf" in outcome.changes

    @pytest.mark.parametrize(
        ("value", "compatible"),
        [("yes", True), ("no", False), (None, False), (1, True), (0, False), (["x"], True)],
    )
    def test_scalar_platform_config(self, normalizer: SchemaNormalizer, value: Any, compatible: bool) -> None:
        first = normalizer.migrate(_canonical(platforms={"cursor": value, "windsurf": {"compatible": True}}))

        assert first.record["platforms"] == {
            "cursor": {"compatible": compatible},
            "windsurf": {"compatible": True},
        }
        assert "Converted legacy platform config: cursor" in first.changes
        second = normalizer.migrate(first.record)
        assert second.skipped
        assert second.changes == ()

    @pytest.mark.parametrize(("value", "name"), [("cursor", "cursor"), ("", "claude-code"), (7, "claude-code")])
    def test_scalar_platforms_value(self, normalizer: SchemaNormalizer, value: Any, name: str) -> None:
        first = normalizer.migrate(_canonical(platforms=value))

        assert first.record["platforms"] == {name: {"compatible": True}}
        assert normalizer.migrate(first.record).skipped

    def test_always_apply_and_file_types(self, normalizer: SchemaNormalizer) -> None:
        legacy = _legacy() | {"alwaysApply": True, "fileTypes": ["py", ".pyi"]}

        outcome = normalizer.migrate(legacy)

        platforms = outcome.record["platforms"]
        assert platforms["claude-code"] == {"compatible": True, "memory": True}
        assert platforms["cursor"] == {
            "compatible": True,
            "globs": ["**/*.py", "**/*.pyi"],
            "activation": "auto-attached",
        }
        assert "Mapped alwaysApply to claude-code.memory" in outcome.changes
        assert "Mapped fileTypes to cursor.globs" in outcome.changes

    def test_tags_canonicalized(self, normalizer: SchemaNormalizer) -> None:
        outcome = normalizer.migrate(_canonical(tags="Python, Code Style,python"), force=True)

        assert outcome.record["tags"] == ["python", "code-style"]
        assert outcome.changes == ("Canonicalized tags to kebab-case",)

    def test_dates_normalized(self, normalizer: SchemaNormalizer) -> None:
        legacy = _canonical(created=date(2024, 1, 5), lastUpdated="2024/03/07", last_updated="someday")

        outcome = normalizer.migrate(legacy, force=True)

        assert outcome.record["created"] == "2024-01-05"
        assert outcome.record["lastUpdated"] == "2024-03-07"
        assert outcome.record["last_updated"] == "someday"
        assert len(outcome.changes) == 2


class TestFormatDate:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (date(2024, 1, 5), "2024-01-05"),
            (datetime(2024, 1, 5, 12, 30), "2024-01-05"),
            ("2024-01-05", "2024-01-05"),
            ("2024-01-05T10:00:00Z", "2024-01-05"),
            ("2024-1-5", "2024-01-05"),
            ("2024/01/05", "2024-01-05"),
            ("January 5, 2024", "2024-01-05"),
            ("not a date", None),
            ("2024-13-45", None),
            (42, None),
        ],
    )
    def test_formats(self, value: Any, expected: str | None) -> None:
        assert format_date(value) == expected


class TestValidate:
    def test_canonical_record_valid(self, normalizer: SchemaNormalizer) -> None:
        result = normalizer.validate(_canonical(tags=["python"], requires=["base-rules"]))

        assert result.valid
        assert result.errors == ()

    def test_missing_and_empty_required_fields(self, normalizer: SchemaNormalizer) -> None:
        record = _canonical(title="")
        del record["scope"]

        errors = normalizer.validate(record).errors

        assert "Missing required field: title" in errors
        assert "Missing required field: scope" in errors

    def test_self_reference(self, normalizer: SchemaNormalizer) -> None:
        result = normalizer.validate(_canonical(requires=["python-style"]))

        assert not result.valid
        assert any("Self-reference" in e and "requires" in e for e in result.errors)

    def test_requires_and_conflicts_overlap(self, normalizer: SchemaNormalizer) -> None:
        result = normalizer.validate(_canonical(requires=["a", "b"], conflicts=["b"]))

        assert "Cannot both require and conflict with: b" in result.errors

    def test_needs_one_compatible_platform(self, normalizer: SchemaNormalizer) -> None:
        result = normalizer.validate(_canonical(platforms={"cursor": {"compatible": False}}))

        assert "At least one platform must have compatible: true" in result.errors

    def test_enum_violation(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(complexity="huge")).errors

        assert errors == ("Field 'complexity' must be one of: simple, medium, complex",)

    def test_type_violation(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(version=1)).errors

        assert errors == ("Field 'version' should be of type string, got integer",)

    def test_pattern_violation(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(id="Not Kebab")).errors

        assert len(errors) == 1
        assert errors[0].startswith("Field 'id' does not match required pattern")

    def test_tag_rules(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(tags=["ok", "ok", "Bad Tag"])).errors

        assert "Array 'tags' must have unique items" in errors
        assert any(e.startswith("Field 'tags[2]' does not match") for e in errors)

    def test_too_many_tags(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(tags=[f"t{i}" for i in range(11)])).errors

        assert errors == ("Array 'tags' must not have more than 10 items",)

    def test_platform_field_rules(self, normalizer: SchemaNormalizer) -> None:
        platforms = {
            "claude-code": {"compatible": True, "priority": 11},
            "github-copilot": {"compatible": True, "priority": True},
            "cursor": {"compatible": True, "colour": "blue"},
            "windsurf": {"mode": "workspace"},
        }

        errors = normalizer.validate(_canonical(platforms=platforms)).errors

        assert "Field 'platforms.claude-code.priority' must not exceed 10" in errors
        assert "Field 'platforms.github-copilot.priority' should be of type integer, got boolean" in errors
        assert "Platform 'cursor' has unknown field: colour" in errors
        assert "Platform 'windsurf' missing required field: compatible" in errors

    def test_unknown_platform_uses_generic_definition(self, normalizer: SchemaNormalizer) -> None:
        platforms = {"zed": {"compatible": True, "anything": 1}}

        assert normalizer.validate(_canonical(platforms=platforms)).valid

    def test_non_mapping_platform_config(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(platforms={"cursor": True})).errors

        assert "Platform 'cursor' configuration must be a mapping" in errors

    def test_bad_date(self, normalizer: SchemaNormalizer) -> None:
        assert not normalizer.validate(_canonical(created="someday")).valid

    def test_command_requires_command_block(self, normalizer: SchemaNormalizer) -> None:
        errors = normalizer.validate(_canonical(type="command")).errors

        assert errors == ("Missing required field: command",)

    def test_command_block_rules(self, normalizer: SchemaNormalizer) -> None:
        record = _canonical(type="command", command={"slashCommand": "deploy", "commandType": "slash"})

        errors = normalizer.validate(record).errors

        assert len(errors) == 1
        assert errors[0].startswith("Field 'command.slashCommand' does not match")

    def test_unknown_type(self, normalizer: SchemaNormalizer) -> None:
        result = normalizer.validate(_canonical(type="snippet"))

        assert not result.valid
        assert result.errors[0].startswith("Unknown record type 'snippet'")
