"""Deterministic attribute heuristics shared by the Adapter and SchemaNormalizer.

Keyword chains are ordered; the first rule with any keyword matching at a
word start wins ("ui" matches "UI kit" but not "build").
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

DEFAULT_VERSION = "1.0.0"

CATEGORY_CHAIN: tuple[tuple[tuple[str, ...], str], ...] = (
    (("test", "spec"), "testing"),
    (("security", "auth"), "security"),
    (("performance", "optimiz", "optimis"), "performance"),
    (("git", "commit"), "git"),
    (("debug", "log"), "debugging"),
    (("doc", "readme"), "documentation"),
    (("refactor", "clean"), "refactoring"),
    (("api", "endpoint", "ui", "component"), "development"),
)

SCOPE_CHAIN: tuple[tuple[tuple[str, ...], str], ...] = (
    (("project", "global"), "project"),
    (("system", "architecture"), "system"),
    (("feature", "module"), "feature"),
    (("component", "class"), "component"),
)
DEFAULT_SCOPE = "file"

SUBCATEGORY_CHAIN: tuple[tuple[str, str], ...] = (
    ("react", "react"),
    ("typescript", "typescript"),
    ("next.js", "nextjs"),
    ("testing", "testing"),
    ("styling", "styling"),
)

# Matched as whole words, case-insensitive; tag is the kebab-cased entry
TECH_VOCABULARY: tuple[str, ...] = (
    "python",
    "javascript",
    "typescript",
    "react",
    "vue",
    "angular",
    "svelte",
    "next.js",
    "node.js",
    "django",
    "flask",
    "fastapi",
    "rust",
    "java",
    "kotlin",
    "swift",
    "ruby",
    "rails",
    "php",
    "graphql",
    "sql",
    "postgres",
    "mysql",
    "mongodb",
    "redis",
    "docker",
    "kubernetes",
    "terraform",
    "aws",
    "gcp",
    "azure",
    "tailwind",
    "api",
    "frontend",
    "backend",
)

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_VOCAB_PATTERNS = tuple(
    (re.compile(rf"(?<![\w.-]){re.escape(word)}(?![\w-])", re.IGNORECASE), word)
    for word in TECH_VOCABULARY
)


def slugify(text: str) -> str:
    """Lowercase, non-alphanumeric runs to a single "-", trimmed."""
    return _NON_SLUG.sub("-", text.lower()).strip("-")


def kebab_tag(tag: Any) -> str:
    return slugify(str(tag))


def title_case(name: str) -> str:
    """Title-case a slug: "api-design_guide" -> "Api Design Guide"."""
    words = re.split(r"[-_\s]+", name.strip())
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def _starts_word(keyword: str, lower_text: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}", lower_text) is not None


def _first_in_chain(
    chain: tuple[tuple[tuple[str, ...], str], ...],
    text: str,
) -> str | None:
    lower = text.lower()
    for keywords, value in chain:
        if any(_starts_word(kw, lower) for kw in keywords):
            return value
    return None


def infer_category(text: str, default: str = "core") -> str:
    return _first_in_chain(CATEGORY_CHAIN, text) or default


def infer_subcategory(text: str) -> str | None:
    lower = text.lower()
    for keyword, value in SUBCATEGORY_CHAIN:
        if keyword in lower:
            return value
    return None


def infer_complexity(word_count: int, section_count: int, has_templating: bool) -> str:
    if word_count > 1000 or section_count > 5 or has_templating:
        return "complex"
    if word_count > 300 or section_count > 2:
        return "medium"
    return "simple"


def infer_scope(text: str, path: str = "") -> str:
    scope = _first_in_chain(SCOPE_CHAIN, text)
    if scope is None and "component" in path.lower():
        return "component"
    return scope or DEFAULT_SCOPE


def infer_audience(category: str | None, complexity: str | None) -> str:
    if category == "core":
        return "any"
    if complexity == "complex":
        return "senior"
    return "developer"


def infer_maturity(version: Any, *, experimental: bool = False, deprecated: bool = False) -> str:
    """Flags win; otherwise 0.x is beta and 1.x or later is stable."""
    if deprecated:
        return "deprecated"
    if experimental:
        return "experimental"
    major = str(version or "").strip().lstrip("vV").split(".", 1)[0]
    if major.isdigit():
        return "beta" if int(major) == 0 else "stable"
    return "beta"


def tech_tags(text: str) -> list[str]:
    return [kebab_tag(word) for pattern, word in _VOCAB_PATTERNS if pattern.search(text)]


def merge_tags(*groups: Iterable[Any], limit: int, reserved: str | None = None) -> list[str]:
    """Kebab-case, dedupe in first-seen order and cap at ``limit``.

    ``reserved`` is always kept as the final tag.
    """
    seen: dict[str, None] = {}
    for group in groups:
        for raw in group:
            tag = kebab_tag(raw)
            if tag and tag != reserved:
                seen.setdefault(tag, None)
    room = limit - 1 if reserved else limit
    tags = list(seen)[: max(room, 0)]
    if reserved:
        tags.append(reserved)
    return tags


def first_paragraph(body: str, *, min_length: int = 20, max_length: int = 200) -> str | None:
    """First non-header paragraph longer than ``min_length``, truncated with "..."."""
    paragraph: list[str] = []
    in_code = False

    def flush() -> str | None:
        text = " ".join(paragraph).strip()
        paragraph.clear()
        if len(text) > min_length:
            return text if len(text) <= max_length else text[: max_length - 3].rstrip() + "..."
        return None

    for line in [*body.splitlines(), ""]:
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_code = not in_code
            continue
        if in_code:
            continue
        if not stripped or stripped.startswith("#") or stripped.startswith("<!--"):
            if paragraph and (found := flush()):
                return found
            continue
        paragraph.append(stripped)
    return None
