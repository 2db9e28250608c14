"""Content analysis: header parsing, section splitting and feature flags.

All functions are pure and never raise on malformed input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from ctxmigrate.detection.models import ContentFlags, ContextType, Section

_FENCE = "---"


@dataclass(frozen=True, slots=True)
class Parsed:
    """Text carried a well-formed header block."""

    header: dict[str, Any]
    body: str


@dataclass(frozen=True, slots=True)
class Unparsed:
    """No usable header. ``error`` is set only when a header was present but broken."""

    body: str
    error: str | None = None


HeaderResult = Parsed | Unparsed


def parse_header(text: str) -> HeaderResult:
    """Split a leading ``---`` fenced YAML block from the body.

    A missing closing fence, invalid YAML, or a non-mapping document all
    return the whole input as body.
    """
    if not text.startswith(_FENCE):
        return Unparsed(text)

    lines = text.splitlines(keepends=True)
    if lines[0].rstrip() != _FENCE:
        return Unparsed(text)

    closing = next((i for i in range(1, len(lines)) if lines[i].rstrip() == _FENCE), None)
    if closing is None:
        return Unparsed(text, "missing closing '---' fence")

    raw = "".join(lines[1:closing])
    body = "".join(lines[closing + 1 :])
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        problem = getattr(e, "problem", None) or str(e).splitlines()[0]
        return Unparsed(text, f"invalid YAML: {problem}")
    except ValueError as e:
        # Out-of-range timestamps such as 2024-02-30 fail in the constructor
        return Unparsed(text, f"invalid YAML: {e}")

    if data is None:
        return Parsed({}, body)
    if not isinstance(data, dict):
        return Unparsed(text, f"header is a {type(data).__name__}, not a mapping")
    return Parsed({str(k): v for k, v in data.items()}, body)


# =============================================================================
# Sections
# =============================================================================

_MD_HEADER = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
# A short unindented label such as "Code Style:" on a line of its own
_PSEUDO_HEADER = re.compile(r"^([A-Z][A-Za-z0-9 /&()'-]{0,58}[A-Za-z0-9)]|[A-Z]):$")
_CODE_FENCE = re.compile(r"^\s*(```|~~~)")


@dataclass
class _OpenSection:
    level: int
    title: str
    lines: list[str] = field(default_factory=list)

    def close(self) -> Section:
        return Section(level=self.level, title=self.title, lines=tuple(self.lines))


def split_sections(body: str) -> list[Section]:
    """Split body text into ordered sections.

    Markdown headers set the level directly; pseudo-headers sit one level
    below the nearest preceding markdown header. Text before the first
    header belongs to no section.
    """
    sections: list[Section] = []
    current: _OpenSection | None = None
    md_level = 0
    in_code = False

    for line in body.splitlines():
        if _CODE_FENCE.match(line):
            in_code = not in_code
            if current is not None:
                current.lines.append(line)
            continue

        if not in_code:
            md = _MD_HEADER.match(line.strip()) if not line.startswith((" ", "\t")) else None
            if md:
                if current is not None:
                    sections.append(current.close())
                md_level = len(md.group(1))
                current = _OpenSection(md_level, md.group(2).strip())
                continue

            pseudo = _PSEUDO_HEADER.match(line.rstrip())
            if pseudo:
                if current is not None:
                    sections.append(current.close())
                current = _OpenSection(min(md_level + 1, 6), pseudo.group(1))
                continue

        if current is not None and line.strip():
            current.lines.append(line)

    if current is not None:
        sections.append(current.close())
    return sections


# =============================================================================
# Feature flags
# =============================================================================

_RULE_KEYWORDS = (
    "rule:",
    "rules:",
    "guideline",
    "principle",
    "convention",
    "standard",
    "practice",
    "requirement",
    "constraint",
    "always",
    "never",
    "should",
    "must",
    "avoid",
    "prefer",
)

_MEMORY_KEYWORDS = (
    "memory:",
    "remember:",
    "context:",
    "background:",
    "history:",
    "preferences:",
    "settings:",
    "configuration:",
    "project:",
    "codebase:",
    "architecture:",
    "stack:",
)

_TEMPLATING_PATTERNS = (
    re.compile(r"\{\{.*?\}\}", re.DOTALL),  # double-brace
    re.compile(r"\$\{[^}]*\}"),  # dollar-brace
    re.compile(r"<[\w-]+>"),  # angle tag
    re.compile(r"\[\[.*?\]\]", re.DOTALL),  # double-bracket
    re.compile(r"%[\w-]+%"),  # percent-delimited
)

_SLASH_COMMAND = re.compile(r"(?:^|\s)/[a-z][\w:-]*", re.MULTILINE)


# Per-type command markers; must cover every ContextType
COMMAND_PATTERNS: dict[ContextType, tuple[str, ...]] = {
    ContextType.ASSISTANT_MEMORY: ("mcp:", "tool:", "slash command"),
    ContextType.EDITOR_RULES: ("@", "ctrl+", "cmd+", "tab trigger"),
    ContextType.REVIEW_POLICY: ("copilot:", "gh ", "github.com"),
    ContextType.WORKSPACE_AGENT: ("cascade:", "windsurf:", "agent:"),
    ContextType.GENERIC_PROMPT: ("/command", "run:", "execute:"),
}


def has_templating(body: str) -> bool:
    return any(p.search(body) for p in _TEMPLATING_PATTERNS)


def detect_flags(body: str, context_type: ContextType) -> ContentFlags:
    """Compute the four boolean content flags independently."""
    lower = body.lower()
    has_commands = any(p in lower for p in COMMAND_PATTERNS[context_type])
    if not has_commands and context_type is ContextType.ASSISTANT_MEMORY:
        has_commands = _SLASH_COMMAND.search(body) is not None
    return ContentFlags(
        has_commands=has_commands,
        has_rules=any(k in lower for k in _RULE_KEYWORDS),
        has_memory_reference=any(k in lower for k in _MEMORY_KEYWORDS),
        has_templating=has_templating(body),
    )


def count_words(text: str) -> int:
    return len(text.split())
