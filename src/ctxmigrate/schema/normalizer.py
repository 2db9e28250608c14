"""Schema normalization and validation of canonical record headers.

Records are plain header mappings (camelCase keys) as read from or written
to disk. ``migrate`` upgrades legacy or partial headers; ``validate`` checks
them against the contract for their ``type``.

Invariants:
- migrate never mutates its input
- migrate on an already-normalized header applies no change, forced or not
- every applied change adds exactly one line to the change log
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ctxmigrate.adapt import heuristics as h
from ctxmigrate.core.logging import get_logger
from ctxmigrate.detection.analyzer import count_words, has_templating, split_sections
from ctxmigrate.schema.contract import FieldRule, PlatformRule, SchemaContract, load_contracts

log = get_logger(__name__)

VERSION_FIELDS = ("complexity", "scope", "audience", "maturity")
DATE_FIELDS = ("created", "lastUpdated", "last_updated")
UNIVERSAL_PLATFORM = "claude-code"
DEFAULT_KIND = "blueprint"

_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")


@dataclass(frozen=True, slots=True)
class MigrationOutcome:
    record: dict[str, Any]
    changes: tuple[str, ...] = ()
    skipped: bool = False


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()


def _present(record: Mapping[str, Any], key: str) -> bool:
    return record.get(key) not in (None, "")


_FALSE_WORDS = frozenset({"", "false", "no", "off", "0", "none", "null"})


def _as_flag(value: Any) -> bool:
    """Legacy scalar platform value as a compatibility flag."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_WORDS
    return bool(value)


def format_date(value: Any) -> str | None:
    """Normalize a date-ish value to YYYY-MM-DD, or None if unparseable."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass
    match = _DATE_PREFIX.match(text)
    if match:
        try:
            return date(int(match[1]), int(match[2]), int(match[3])).isoformat()
        except ValueError:
            return None
    for fmt in ("%Y/%m/%d", "%d %B %Y", "%B %d, %Y", "%b %d, %Y"):
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if value is None:
        return "null"
    return type(value).__name__


def _matches_type(value: Any, expected: str) -> bool:
    actual = _type_name(value)
    if expected == "number":
        return actual in ("integer", "number")
    return actual == expected


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    return value


def check_value(label: str, value: Any, rule: FieldRule) -> list[str]:
    """Errors for one value against one field rule."""
    errors: list[str] = []
    if rule.type and not _matches_type(value, rule.type):
        return [f"Field '{label}' should be of type {rule.type}, got {_type_name(value)}"]

    if rule.enum is not None and value not in rule.enum:
        errors.append(f"Field '{label}' must be one of: {', '.join(map(str, rule.enum))}")

    if isinstance(value, str):
        if rule.pattern and not re.search(rule.pattern, value):
            errors.append(f"Field '{label}' does not match required pattern {rule.pattern}")
        if rule.min_length is not None and len(value) < rule.min_length:
            errors.append(f"Field '{label}' must be at least {rule.min_length} characters")
        if rule.max_length is not None and len(value) > rule.max_length:
            errors.append(f"Field '{label}' must not exceed {rule.max_length} characters")

    if _type_name(value) in ("integer", "number"):
        if rule.minimum is not None and value < rule.minimum:
            errors.append(f"Field '{label}' must be at least {rule.minimum:g}")
        if rule.maximum is not None and value > rule.maximum:
            errors.append(f"Field '{label}' must not exceed {rule.maximum:g}")

    if isinstance(value, list | tuple):
        if rule.min_items is not None and len(value) < rule.min_items:
            errors.append(f"Array '{label}' must have at least {rule.min_items} items")
        if rule.max_items is not None and len(value) > rule.max_items:
            errors.append(f"Array '{label}' must not have more than {rule.max_items} items")
        if rule.unique_items and len({_freeze(v) for v in value}) != len(value):
            errors.append(f"Array '{label}' must have unique items")
        if rule.items is not None:
            for index, item in enumerate(value):
                errors.extend(check_value(f"{label}[{index}]", item, rule.items))

    if isinstance(value, Mapping) and rule.properties:
        for sub, sub_rule in rule.properties.items():
            if value.get(sub) is not None:
                errors.extend(check_value(f"{label}.{sub}", value[sub], sub_rule))

    return errors


class SchemaNormalizer:
    """Upgrades legacy headers and validates them against schema contracts.

    Args:
        contracts: Contracts keyed by record type; bundled ones by default
    """

    def __init__(self, contracts: Mapping[str, SchemaContract] | None = None) -> None:
        self._contracts = dict(contracts) if contracts is not None else load_contracts()

    @property
    def contracts(self) -> Mapping[str, SchemaContract]:
        return self._contracts

    # -- canonical check ------------------------------------------------------

    @staticmethod
    def is_canonical(record: Mapping[str, Any]) -> bool:
        """All version-defining fields present and platforms a non-empty map of maps."""
        if not all(_present(record, f) for f in VERSION_FIELDS):
            return False
        platforms = record.get("platforms")
        return (
            isinstance(platforms, Mapping)
            and len(platforms) > 0
            and all(isinstance(cfg, Mapping) for cfg in platforms.values())
        )

    # -- migration --------------------------------------------------------------

    def migrate(
        self,
        record: Mapping[str, Any],
        body: str = "",
        *,
        force: bool = False,
    ) -> MigrationOutcome:
        if self.is_canonical(record) and not force:
            return MigrationOutcome(record=copy.deepcopy(dict(record)), skipped=True)

        out: dict[str, Any] = copy.deepcopy(dict(record))
        changes: list[str] = []

        self._migrate_identity(out, changes)
        self._migrate_version_fields(out, body, changes)
        self._migrate_dates(out, changes)
        self._migrate_platforms(out, changes)
        self._migrate_tags(out, changes)

        if changes:
            log.debug("record_migrated", id=out.get("id"), changes=len(changes))
        return MigrationOutcome(record=out, changes=tuple(changes), skipped=False)

    def _migrate_identity(self, out: dict[str, Any], changes: list[str]) -> None:
        name = out.get("name")
        if not _present(out, "id") and isinstance(name, str) and h.slugify(name):
            out["id"] = h.slugify(name)
            changes.append(f"Added id from name: {out['id']}")
        if not _present(out, "title") and isinstance(name, str) and name.strip():
            out["title"] = h.title_case(name)
            changes.append(f"Added title from name: {out['title']}")

        version = out.get("version")
        if not _present(out, "version"):
            out["version"] = h.DEFAULT_VERSION
            changes.append(f"Added version: {h.DEFAULT_VERSION}")
        elif isinstance(version, int | float) and not isinstance(version, bool):
            parts = str(version).split(".")
            out["version"] = ".".join([*parts, *["0"] * (3 - len(parts))][:3])
            changes.append(f"Converted version to string: {out['version']}")

    def _migrate_version_fields(self, out: dict[str, Any], body: str, changes: list[str]) -> None:
        category = out.get("category") if isinstance(out.get("category"), str) else None

        if not _present(out, "complexity"):
            sections = split_sections(body)
            out["complexity"] = h.infer_complexity(count_words(body), len(sections), has_templating(body))
            changes.append(f"Added complexity: {out['complexity']}")
        if not _present(out, "scope"):
            out["scope"] = h.infer_scope(body)
            changes.append(f"Added scope: {out['scope']}")
        if not _present(out, "audience"):
            out["audience"] = h.infer_audience(category, out.get("complexity"))
            changes.append(f"Added audience: {out['audience']}")
        if not _present(out, "maturity"):
            out["maturity"] = h.infer_maturity(
                out.get("version"),
                experimental=bool(out.get("experimental")),
                deprecated=bool(out.get("deprecated")),
            )
            changes.append(f"Added maturity: {out['maturity']}")

    def _migrate_dates(self, out: dict[str, Any], changes: list[str]) -> None:
        for key in DATE_FIELDS:
            if key not in out or out[key] is None:
                continue
            formatted = format_date(out[key])
            # Unparseable values stay put so validation reports them
            if formatted is not None and formatted != out[key]:
                out[key] = formatted
                changes.append(f"Formatted {key} date: {formatted}")

    def _migrate_platforms(self, out: dict[str, Any], changes: list[str]) -> None:
        platforms = out.get("platforms")

        if platforms is None or platforms == {} or platforms == []:
            out["platforms"] = {UNIVERSAL_PLATFORM: {"compatible": True}}
            changes.append(f"Added platform configuration: {UNIVERSAL_PLATFORM}")
        elif isinstance(platforms, list):
            out["platforms"] = {
                str(p): {"compatible": True} for p in platforms if isinstance(p, str) and p
            } or {UNIVERSAL_PLATFORM: {"compatible": True}}
            changes.append(f"Converted platforms list to map: {', '.join(out['platforms'])}")
        elif isinstance(platforms, Mapping):
            converted: list[str] = []
            structured: dict[str, Any] = {}
            for name, cfg in platforms.items():
                if isinstance(cfg, Mapping):
                    if "compatible" in cfg:
                        structured[name] = cfg
                        continue
                    structured[name] = {"compatible": True, **cfg}
                else:
                    structured[name] = {"compatible": _as_flag(cfg)}
                converted.append(str(name))
            if converted:
                out["platforms"] = structured
                changes.append(f"Converted legacy platform config: {', '.join(converted)}")
        else:
            name = platforms.strip() if isinstance(platforms, str) else ""
            out["platforms"] = {name or UNIVERSAL_PLATFORM: {"compatible": True}}
            changes.append(f"Converted platforms value to map: {name or UNIVERSAL_PLATFORM}")

        platforms = out.get("platforms")
        if not isinstance(platforms, dict):
            return

        if out.get("alwaysApply") is True:
            universal = platforms.setdefault(UNIVERSAL_PLATFORM, {"compatible": True})
            if isinstance(universal, dict) and universal.get("memory") is not True:
                universal["memory"] = True
                changes.append(f"Mapped alwaysApply to {UNIVERSAL_PLATFORM}.memory")

        file_types = out.get("fileTypes")
        cursor = platforms.get("cursor")
        if isinstance(file_types, list) and file_types and isinstance(cursor, dict) and "globs" not in cursor:
            cursor["globs"] = [f"**/*.{str(t).lstrip('.')}" for t in file_types]
            cursor.setdefault("activation", "auto-attached")
            changes.append("Mapped fileTypes to cursor.globs")

    def _migrate_tags(self, out: dict[str, Any], changes: list[str]) -> None:
        tags = out.get("tags")
        if isinstance(tags, str):
            raw: list[Any] = [t for t in tags.split(",")]
        elif isinstance(tags, list):
            raw = tags
        else:
            return
        canonical = list(dict.fromkeys(t for t in (h.kebab_tag(r) for r in raw) if t))
        if canonical != tags:
            out["tags"] = canonical
            changes.append("Canonicalized tags to kebab-case")

    # -- validation -------------------------------------------------------------

    def validate(self, record: Mapping[str, Any]) -> ValidationResult:
        kind = record.get("type") or DEFAULT_KIND
        contract = self._contracts.get(str(kind))
        if contract is None:
            known = ", ".join(sorted(self._contracts))
            return ValidationResult(False, (f"Unknown record type '{kind}' (expected one of: {known})",))

        errors: list[str] = []
        for field_name in contract.required:
            if not _present(record, field_name):
                errors.append(f"Missing required field: {field_name}")

        for field_name, rule in contract.fields.items():
            value = record.get(field_name)
            if value is None:
                continue
            errors.extend(check_value(field_name, value, rule))
            if field_name == "platforms" and isinstance(value, Mapping):
                errors.extend(self._check_platforms(value, contract))

        errors.extend(self._check_relationships(record, contract))
        return ValidationResult(valid=not errors, errors=tuple(errors))

    @staticmethod
    def _check_platforms(platforms: Mapping[str, Any], contract: SchemaContract) -> list[str]:
        errors: list[str] = []
        for name, cfg in platforms.items():
            if not isinstance(cfg, Mapping):
                errors.append(f"Platform '{name}' configuration must be a mapping")
                continue
            rule: PlatformRule | None = contract.platforms.get(name)
            known = rule is not None
            rule = rule or contract.generic_platform
            for required in rule.required:
                if required not in cfg:
                    errors.append(f"Platform '{name}' missing required field: {required}")
            for field_name, value in cfg.items():
                field_rule = rule.fields.get(field_name)
                if field_rule is None:
                    if known:
                        errors.append(f"Platform '{name}' has unknown field: {field_name}")
                    continue
                errors.extend(check_value(f"platforms.{name}.{field_name}", value, field_rule))

        if platforms and not any(
            isinstance(cfg, Mapping) and cfg.get("compatible") is True for cfg in platforms.values()
        ):
            errors.append("At least one platform must have compatible: true")
        return errors

    @staticmethod
    def _check_relationships(record: Mapping[str, Any], contract: SchemaContract) -> list[str]:
        errors: list[str] = []
        record_id = record.get("id")
        for field_name in contract.relationships:
            items = record.get(field_name)
            if isinstance(items, list) and record_id and record_id in items:
                errors.append(f"Self-reference: '{record_id}' cannot reference itself in {field_name}")

        requires = record.get("requires")
        conflicts = record.get("conflicts")
        if isinstance(requires, list) and isinstance(conflicts, list):
            overlap = [r for r in requires if r in conflicts]
            if overlap:
                errors.append(f"Cannot both require and conflict with: {', '.join(map(str, overlap))}")
        return errors
