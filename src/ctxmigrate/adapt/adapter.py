"""Adapter: detected context -> canonical record.

Every field has a documented fallback, so ``adapt`` never fails on sparse
or odd input:

- id: ``<short code>-<slug of base name>``, else ``migrated-<unix millis>``
- title: header title, first level-1 heading, file stem, type display name
- description: header description, first paragraph > 20 chars, generic text
- category/scope/audience/maturity/complexity: header value, else heuristics
- platforms: origin platform plus the universal ``claude-code`` entry
- tags: header tags, technology vocabulary, ``migrated-from-<type>``
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Any

from ctxmigrate.adapt import heuristics as h
from ctxmigrate.config.models import AdapterConfig
from ctxmigrate.core.logging import get_logger
from ctxmigrate.detection.models import ContextType, DetectedContext
from ctxmigrate.records.models import (
    CanonicalRecord,
    CommandArguments,
    CommandSpec,
    MigrationInfo,
    PlatformCapability,
)

log = get_logger(__name__)

UNIVERSAL_PLATFORM = "claude-code"
RELATIONSHIP_FIELDS = ("requires", "suggests", "conflicts", "supersedes")

_ASSISTANT_PREFIX = re.compile(r"^(claude|cursor|copilot|windsurf)\s*", re.IGNORECASE)


def _header_str(header: Mapping[str, Any], key: str) -> str | None:
    value = header.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _header_list(header: Mapping[str, Any], key: str) -> list[str]:
    value = header.get(key)
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return []


def _stem(name: str) -> str:
    # ".cursorrules" has no suffix; ".copilotrc.json" has stem ".copilotrc"
    return PurePosixPath(name).stem.lstrip(".")


def is_command_artifact(ctx: DetectedContext) -> bool:
    """Assistant-memory files under a commands/ segment or named *command*."""
    if ctx.type is not ContextType.ASSISTANT_MEMORY or ctx.is_directory:
        return False
    return "/commands/" in "/" + ctx.relative_path.lower() or "command" in ctx.name.lower()


class Adapter:
    """Converts DetectedContexts into CanonicalRecords.

    Args:
        config: Tag cap and description length
        clock: Source of "now" for ids, provenance and lastUpdated
    """

    def __init__(
        self,
        config: AdapterConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or AdapterConfig()
        self._clock = clock or (lambda: datetime.now(UTC))

    def adapt(self, ctx: DetectedContext) -> CanonicalRecord:
        now = self._clock()
        header = ctx.header
        text = ctx.body
        is_command = is_command_artifact(ctx)

        category = (_header_str(header, "category") or "").lower() or h.infer_category(
            text, ctx.signals.default_category
        )
        complexity = _header_str(header, "complexity") or h.infer_complexity(
            ctx.word_count, len(ctx.sections), ctx.flags.has_templating
        )
        version = _header_str(header, "version") or h.DEFAULT_VERSION
        subcategory = _header_str(header, "subcategory") or h.infer_subcategory(text)

        record = CanonicalRecord(
            id=self.make_id(ctx, now),
            kind="command" if is_command else "blueprint",
            title=self.make_title(ctx),
            description=self.make_description(ctx),
            version=version,
            category=category,
            subcategory=subcategory,
            complexity=complexity,
            scope=_header_str(header, "scope") or h.infer_scope(text, ctx.relative_path),
            audience=_header_str(header, "audience") or h.infer_audience(category, complexity),
            maturity=_header_str(header, "maturity")
            or h.infer_maturity(
                version,
                experimental=bool(header.get("experimental")),
                deprecated=bool(header.get("deprecated")),
            ),
            platforms=self.make_platforms(ctx, is_command=is_command),
            tags=h.merge_tags(
                _header_list(header, "tags"),
                h.tech_tags(text),
                limit=self._config.max_tags,
                reserved=f"migrated-from-{ctx.type.value}",
            ),
            author=_header_str(header, "author") or f"Migrated from {ctx.display_name}",
            last_updated=now.date().isoformat(),
            content_sections=[s.title for s in ctx.sections],
            migration=MigrationInfo(
                original_source=ctx.display_name,
                original_path=ctx.relative_path,
                confidence=ctx.confidence.value,
                migration_date=now.isoformat(timespec="seconds"),
            ),
            command=self.make_command(ctx) if is_command else None,
            body=self.render_body(ctx),
            **{f: _header_list(header, f) for f in RELATIONSHIP_FIELDS},
        )
        log.debug("context_adapted", path=ctx.relative_path, id=record.id, kind=record.kind)
        return record

    # -- field builders -------------------------------------------------------

    def make_id(self, ctx: DetectedContext, now: datetime) -> str:
        slug = h.slugify(_stem(ctx.name))
        if not slug:
            return f"migrated-{int(now.timestamp() * 1000)}"
        return f"{ctx.signals.short_code}-{slug}"

    def make_title(self, ctx: DetectedContext) -> str:
        if title := _header_str(ctx.header, "title"):
            return title
        for section in ctx.sections:
            if section.level == 1:
                return section.title
        stripped = _ASSISTANT_PREFIX.sub("", h.title_case(_stem(ctx.name))).strip()
        if stripped:
            return stripped[:1].upper() + stripped[1:]
        return ctx.display_name

    def make_description(self, ctx: DetectedContext) -> str:
        if description := _header_str(ctx.header, "description"):
            return description
        paragraph = h.first_paragraph(ctx.body, max_length=self._config.description_max_length)
        return paragraph or f"Migrated AI context from {ctx.display_name}"

    def make_platforms(
        self, ctx: DetectedContext, *, is_command: bool = False
    ) -> dict[str, PlatformCapability]:
        extras = ctx.extras
        origin: dict[str, Any] = {"compatible": True}

        if ctx.type is ContextType.ASSISTANT_MEMORY:
            origin["mcpIntegration"] = bool(extras.get("mcp_servers")) or "mcp" in ctx.body.lower()
            origin["allowedTools"] = list(extras.get("allowed_tools", ()))
            if is_command:
                origin["command"] = True
        elif ctx.type is ContextType.EDITOR_RULES:
            origin["activation"] = "always" if ctx.name in ctx.signals.exact_names else "auto-attached"
            origin["globs"] = list(extras.get("globs", ("**/*",)))
        elif ctx.type is ContextType.REVIEW_POLICY:
            security = bool(extras.get("has_security_rules"))
            origin["priority"] = 9 if security else 7
            if security:
                origin["reviewType"] = "security"
            elif extras.get("has_review_rules"):
                origin["reviewType"] = "code-quality"
            else:
                origin["reviewType"] = "style"
        elif ctx.type is ContextType.WORKSPACE_AGENT:
            origin["mode"] = "workspace"
            origin["xmlTag"] = extras.get("xml_tag", "context")
            origin["characterLimit"] = int(max(len(ctx.body) * 1.2, 1000))
        else:
            origin["activation"] = "manual"

        platforms: dict[str, dict[str, Any]] = {ctx.signals.platform: origin}
        universal = platforms.setdefault(UNIVERSAL_PLATFORM, {"compatible": True})
        universal["memory"] = not is_command
        return {name: PlatformCapability(**cfg) for name, cfg in platforms.items()}

    def make_command(self, ctx: DetectedContext) -> CommandSpec:
        extras = ctx.extras
        slash_commands = tuple(extras.get("slash_commands", ()))
        slug = h.slugify(_stem(ctx.name)) or "command"
        return CommandSpec(
            command_type="slash" if slash_commands else "custom-slash",
            target=UNIVERSAL_PLATFORM,
            slash_command=f"/{slug}",
            arguments=CommandArguments(supports=bool(extras.get("has_arguments"))),
            file_references=list(extras.get("file_references", ())),
            bash_commands=list(extras.get("bash_commands", ())),
            mcp_servers=list(extras.get("mcp_servers", ())),
        )

    def render_body(self, ctx: DetectedContext) -> str:
        notice = f"<!-- Migrated from {ctx.display_name} ({ctx.relative_path}) -->"
        if ctx.sections:
            blocks = [
                f"## {s.title}\n\n" + "\n".join(s.lines) if s.lines else f"## {s.title}"
                for s in ctx.sections
            ]
            content = "\n\n".join(blocks)
        else:
            content = ctx.body.strip()
        return f"{notice}\n\n{content}".rstrip() + "\n"
