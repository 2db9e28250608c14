"""Type classification and confidence scoring.

Pure functions over primitive inputs; no I/O.

Signal tiers are evaluated in order, each across all types in declaration
order before the next tier starts:
1. Exact filename (case-sensitive)
2. Path glob on the full relative path (case-insensitive)
3. Directory keyword anywhere in the path (case-insensitive, segment-aligned)
"""

from __future__ import annotations

import re
from functools import lru_cache

from ctxmigrate.detection.models import (
    ALL_SIGNALS,
    SIGNALS_BY_TYPE,
    ConfidenceLevel,
    ContextSignals,
    ContextType,
)

EXACT_MATCH_BONUS = 30
INDICATOR_BONUS = 5
CANONICAL_DIR_BONUS = 10
CATCH_ALL_PENALTY = 10

DIRECTORY_BASE_SCORE = 40
DIRECTORY_EXACT_BONUS = 30
DIRECTORY_FILE_BONUS = 5
DIRECTORY_FILE_BONUS_CAP = 20


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a path glob.

    ``**/`` matches zero or more whole segments, ``**`` anything, ``*`` any
    characters within one segment and ``?`` one such character. The result
    is case-insensitive and meant for ``fullmatch``.
    """
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out), re.IGNORECASE)


def _normalize(path: str) -> str:
    rel = path.replace("\\", "/")
    while rel.startswith("./"):
        rel = rel[2:]
    return rel


def _contains_segment(path: str, segment: str) -> bool:
    """True if ``segment`` (one or more path parts) starts at a segment boundary."""
    haystack = "/" + path.lower()
    needle = "/" + segment.lower().strip("/")
    idx = haystack.find(needle)
    while idx != -1:
        end = idx + len(needle)
        if end == len(haystack) or haystack[end] == "/":
            return True
        idx = haystack.find(needle, idx + 1)
    return False


def _keyword_in_path(path: str, keyword: str) -> bool:
    return ("/" + path.lower()).find("/" + keyword.lower()) != -1


def match_type(path: str, name: str) -> ContextType | None:
    """Resolve the context type from path and name alone."""
    rel = _normalize(path)

    for signals in ALL_SIGNALS:
        if name in signals.exact_names:
            return signals.type

    for signals in ALL_SIGNALS:
        if any(glob_to_regex(g).fullmatch(rel) for g in signals.path_globs):
            return signals.type

    for signals in ALL_SIGNALS:
        if any(_keyword_in_path(rel, kw) for kw in signals.dir_keywords):
            return signals.type

    return None


def score(context_type: ContextType, name: str, content: str, path: str) -> int:
    """Integer detection score for a file already matched to ``context_type``."""
    signals = SIGNALS_BY_TYPE[context_type]
    total = int(signals.tier)
    if name in signals.exact_names:
        total += EXACT_MATCH_BONUS
    lower = content.lower()
    total += INDICATOR_BONUS * sum(1 for kw in signals.indicators if kw in lower)
    if _contains_segment(_normalize(path), signals.canonical_dir):
        total += CANONICAL_DIR_BONUS
    if signals.catch_all:
        total -= CATCH_ALL_PENALTY
    return total


def confidence_for(value: int) -> ConfidenceLevel:
    return ConfidenceLevel.from_score(value)


def classify(path: str, name: str, content: str = "") -> tuple[ContextType | None, int]:
    """Classify one artifact. Unclassified artifacts return ``(None, 0)``."""
    context_type = match_type(path, name)
    if context_type is None:
        return None, 0
    return context_type, score(context_type, name, content, path)


# =============================================================================
# Directories
# =============================================================================


def match_directory(relative_path: str) -> ContextSignals | None:
    """Signals whose directory paths end ``relative_path``, first in declaration order."""
    rel = _normalize(relative_path).rstrip("/").lower()
    for signals in ALL_SIGNALS:
        for dir_path in signals.dir_paths:
            target = dir_path.lower()
            if rel == target or rel.endswith("/" + target):
                return signals
    return None


def directory_score(exact_name: bool, relevant_files: int) -> int:
    bonus = min(DIRECTORY_FILE_BONUS * relevant_files, DIRECTORY_FILE_BONUS_CAP)
    return DIRECTORY_BASE_SCORE + (DIRECTORY_EXACT_BONUS if exact_name else 0) + bonus
