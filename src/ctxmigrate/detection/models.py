"""Detection data model: context types, their signal table and detected contexts.

Design decisions:
1. ContextType is a closed enum. Every member MUST have exactly one entry in
   ALL_SIGNALS; the table is checked at import time.
2. Per-type behavior outside the table (command patterns, extractors) lives
   in dicts keyed by ContextType that MUST cover every member.
3. PriorityTier values double as the base score used by the classifier.
4. Relative paths always use "/" separators.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any


class ContextType(str, Enum):
    """Source convention an artifact follows."""

    ASSISTANT_MEMORY = "assistant-memory"
    EDITOR_RULES = "editor-rules"
    REVIEW_POLICY = "review-policy"
    WORKSPACE_AGENT = "workspace-agent"
    GENERIC_PROMPT = "generic-prompt"


class PriorityTier(IntEnum):
    """Type priority. Value is the classifier's base score."""

    LOW = 20
    MEDIUM = 40
    HIGH = 60


class ConfidenceLevel(str, Enum):
    """Coarse bucket derived from an integer detection score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def from_score(cls, score: int) -> ConfidenceLevel:
        if score >= 80:
            return cls.HIGH
        if score >= 60:
            return cls.MEDIUM
        if score >= 40:
            return cls.LOW
        return cls.NONE


_CONFIDENCE_RANK = {
    ConfidenceLevel.HIGH: 3,
    ConfidenceLevel.MEDIUM: 2,
    ConfidenceLevel.LOW: 1,
    ConfidenceLevel.NONE: 0,
}


@dataclass(frozen=True, slots=True)
class ContextSignals:
    """Detection table entry for one context type.

    Attributes:
        type: The context type this entry describes
        tier: Priority tier (base score)
        display_name: Human-readable source name used in provenance
        short_code: Prefix for generated record ids
        platform: Platform key written into the record's platform map
        canonical_dir: Directory path that marks a conventional location
        exact_names: Canonical filenames (case-sensitive EXACT match)
        path_globs: Globs matched against the full relative path
        dir_keywords: Path segments whose presence anywhere in a path classifies it
        indicators: Lowercase content keywords, +5 each when present
        dir_paths: Directory paths that yield directory-level contexts
        relevant_extensions: Member extensions counted when scoring a directory
        default_category: Category used when no content keyword matches
        catch_all: True for the generic fallback type (scored down)
    """

    type: ContextType
    tier: PriorityTier
    display_name: str
    short_code: str
    platform: str
    canonical_dir: str
    exact_names: frozenset[str] = field(default_factory=frozenset)
    path_globs: tuple[str, ...] = ()
    dir_keywords: tuple[str, ...] = ()
    indicators: tuple[str, ...] = ()
    dir_paths: tuple[str, ...] = ()
    relevant_extensions: frozenset[str] = field(default_factory=frozenset)
    default_category: str = "core"
    catch_all: bool = False

    @property
    def dir_name(self) -> str:
        """Last segment of the canonical directory (e.g. "copilot")."""
        return self.canonical_dir.rsplit("/", 1)[-1]


# =============================================================================
# Signal Table
# =============================================================================
# RULES:
# 1. Declaration order is the tie-break order inside one signal tier
# 2. exact_names are case-sensitive; globs and keywords are case-insensitive
# 3. indicators MUST be lowercase

ALL_SIGNALS: tuple[ContextSignals, ...] = (
    ContextSignals(
        type=ContextType.ASSISTANT_MEMORY,
        tier=PriorityTier.HIGH,
        display_name="Claude Code",
        short_code="memory",
        platform="claude-code",
        canonical_dir=".claude",
        exact_names=frozenset({"CLAUDE.md"}),
        path_globs=("**/CLAUDE.md", ".claude/**/*.md", ".claude/commands/**/*"),
        dir_keywords=(".claude/",),
        indicators=("claude-code", "mcp:", "slash command", "claude.md"),
        dir_paths=(".claude",),
        relevant_extensions=frozenset({".md", ".json"}),
        default_category="core",
    ),
    ContextSignals(
        type=ContextType.EDITOR_RULES,
        tier=PriorityTier.HIGH,
        display_name="Cursor",
        short_code="rules",
        platform="cursor",
        canonical_dir=".cursor",
        exact_names=frozenset({".cursorrules", "cursorrules", ".cursor-rules"}),
        path_globs=(".cursor/**/*",),
        dir_keywords=(".cursor/",),
        indicators=("cursor", "tab trigger", "globs:"),
        dir_paths=(".cursor",),
        relevant_extensions=frozenset({".md", ".mdc", ".json"}),
        default_category="core",
    ),
    ContextSignals(
        type=ContextType.REVIEW_POLICY,
        tier=PriorityTier.MEDIUM,
        display_name="GitHub Copilot",
        short_code="review",
        platform="github-copilot",
        canonical_dir=".github/copilot",
        exact_names=frozenset({".copilotrc", ".copilotrc.json", ".copilotrc.yml", ".copilotrc.yaml"}),
        path_globs=(
            ".github/copilot/**/*",
            ".github/copilot.y*ml",
            ".github/copilot-instructions.md",
        ),
        dir_keywords=(".github/copilot",),
        indicators=("copilot", "github", "review", "pull_request"),
        dir_paths=(".github/copilot",),
        relevant_extensions=frozenset({".json", ".yml", ".yaml", ".md"}),
        default_category="task",
    ),
    ContextSignals(
        type=ContextType.WORKSPACE_AGENT,
        tier=PriorityTier.HIGH,
        display_name="Windsurf",
        short_code="agent",
        platform="windsurf",
        canonical_dir=".windsurf",
        exact_names=frozenset({".windsurfrc"}),
        path_globs=(".windsurf/**/*", "windsurf.config.*", ".windsurfrules"),
        dir_keywords=(".windsurf/",),
        indicators=("windsurf", "cascade", "codeium"),
        dir_paths=(".windsurf",),
        relevant_extensions=frozenset({".xml", ".md", ".json"}),
        default_category="assistant",
    ),
    ContextSignals(
        type=ContextType.GENERIC_PROMPT,
        tier=PriorityTier.LOW,
        display_name="Generic AI",
        short_code="prompt",
        platform="generic",
        canonical_dir=".ai",
        path_globs=(".ai/**/*", "ai-rules/**/*", "prompts/**/*", ".prompts/**/*"),
        dir_keywords=(".ai/", "ai-rules/", "prompts/", ".prompts/"),
        indicators=("ai", "prompt", "assistant", "context", "memory"),
        dir_paths=(".ai", "ai-rules", "prompts", ".prompts"),
        relevant_extensions=frozenset({".md", ".txt", ".json", ".yml"}),
        default_category="core",
        catch_all=True,
    ),
)

SIGNALS_BY_TYPE: dict[ContextType, ContextSignals] = {s.type: s for s in ALL_SIGNALS}


def _check_signal_coverage() -> None:
    missing = [t.value for t in ContextType if t not in SIGNALS_BY_TYPE]
    if missing or len(SIGNALS_BY_TYPE) != len(ALL_SIGNALS):
        raise RuntimeError(f"Signal table out of sync with ContextType (missing: {missing})")


_check_signal_coverage()


# =============================================================================
# Enumerated artifacts
# =============================================================================


@dataclass(frozen=True, slots=True)
class FileEntry:
    """A file yielded by the tree enumerator."""

    name: str
    relative_path: str
    absolute_path: str
    size: int = 0
    modified_time: float | None = None

    @property
    def extension(self) -> str:
        stem, dot, ext = self.name.rpartition(".")
        return f".{ext.lower()}" if dot and stem else ""


@dataclass(frozen=True, slots=True)
class DirEntry:
    """A directory yielded by the tree enumerator."""

    name: str
    relative_path: str


# =============================================================================
# Content analysis results
# =============================================================================


@dataclass(frozen=True, slots=True)
class Section:
    """One header-delimited block of body text."""

    level: int
    title: str
    lines: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ContentFlags:
    has_commands: bool = False
    has_rules: bool = False
    has_memory_reference: bool = False
    has_templating: bool = False


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class DetectedContext:
    """A classified artifact (file or directory), immutable once built."""

    type: ContextType
    score: int
    confidence: ConfidenceLevel
    name: str
    relative_path: str
    absolute_path: str
    size: int = 0
    modified_time: float | None = None
    is_directory: bool = False
    header: Mapping[str, Any] = field(default_factory=_empty_mapping)
    header_error: str | None = None
    body: str = ""
    sections: tuple[Section, ...] = ()
    flags: ContentFlags = ContentFlags()
    extras: Mapping[str, Any] = field(default_factory=_empty_mapping)
    file_count: int = 0
    members: tuple[str, ...] = ()
    word_count: int = 0
    line_count: int = 0

    @property
    def signals(self) -> ContextSignals:
        return SIGNALS_BY_TYPE[self.type]

    @property
    def display_name(self) -> str:
        return self.signals.display_name

    def to_dict(self) -> dict[str, Any]:
        """Summary for JSON reports (body omitted)."""
        return {
            "type": self.type.value,
            "confidence": self.confidence.value,
            "score": self.score,
            "path": self.relative_path,
            "is_directory": self.is_directory,
            "file_count": self.file_count,
            "sections": len(self.sections),
            "header_error": self.header_error,
        }
