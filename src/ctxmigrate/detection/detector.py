"""Context detection over enumerated files and directories."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ctxmigrate.core.errors import CtxMigrateError, DetectionError, InternalError
from ctxmigrate.core.logging import get_logger
from ctxmigrate.detection.analyzer import (
    Parsed,
    count_words,
    detect_flags,
    parse_header,
    split_sections,
)
from ctxmigrate.detection.classifier import (
    classify,
    confidence_for,
    directory_score,
    match_directory,
)
from ctxmigrate.detection.models import (
    ConfidenceLevel,
    ContextType,
    DetectedContext,
    DirEntry,
    FileEntry,
)
from ctxmigrate.detection.walker import TEXT_FILENAMES, read_text_file

log = get_logger(__name__)

Reader = Callable[[FileEntry], str | None]
DetectionFailure = tuple[str, CtxMigrateError]

DEFAULT_TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {".md", ".mdc", ".txt", ".js", ".ts", ".json", ".yaml", ".yml", ".toml", ".ini", ".rc", ".xml"}
)

_SLASH_COMMAND = re.compile(r"(?:^|(?<=\s))/([a-z][a-z0-9:_-]*)", re.IGNORECASE | re.MULTILINE)
_MCP_SERVER = re.compile(r"\bmcp:\s*([a-z][\w-]*)", re.IGNORECASE)
_FILE_REFERENCE = re.compile(r"(?<![\w.@])@([\w./-]+\.\w+)")
_BASH_COMMAND = re.compile(r"^!\s*(\S.*)$", re.MULTILINE)
_ARGUMENT_PLACEHOLDER = re.compile(r"\$ARGUMENTS|\$\{?\d+\}?")
_GLOB = re.compile(r"\*\*?/[^\s,;\"'`)\]]+")
_XML_TAG = re.compile(r"<([a-zA-Z][\w-]*)[^>]*>")
KNOWN_TOOLS = ("Read", "Write", "Edit", "MultiEdit", "Bash", "Grep", "Glob", "WebFetch", "WebSearch")


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def _extract_memory(body: str) -> dict[str, Any]:
    lower = body.lower()
    return {
        "slash_commands": _unique(f"/{m}" for m in _SLASH_COMMAND.findall(body)),
        "mcp_servers": _unique(m.lower() for m in _MCP_SERVER.findall(body)),
        "allowed_tools": tuple(t for t in KNOWN_TOOLS if re.search(rf"\b{t}\b", body)),
        "file_references": _unique(_FILE_REFERENCE.findall(body)),
        "bash_commands": _unique(m.strip() for m in _BASH_COMMAND.findall(body)),
        "has_arguments": _ARGUMENT_PLACEHOLDER.search(body) is not None,
        "has_hooks": "hook" in lower,
        "has_memory_files": "claude.md" in lower,
    }


def _extract_rules(body: str) -> dict[str, Any]:
    lower = body.lower()
    return {
        "globs": _unique(_GLOB.findall(body)) or ("**/*",),
        "has_instructions": "instruction" in lower,
        "has_ignore_patterns": "ignore" in lower,
    }


def _extract_review(body: str) -> dict[str, Any]:
    lower = body.lower()
    return {
        "has_review_rules": "review" in lower,
        "has_security_rules": "security" in lower,
        "has_workflow_rules": "workflow" in lower,
    }


def _extract_agent(body: str) -> dict[str, Any]:
    lower = body.lower()
    tag = _XML_TAG.search(body)
    return {
        "xml_tag": tag.group(1) if tag else "context",
        "has_agent_rules": "agent" in lower,
        "has_cascade_rules": "cascade" in lower,
    }


def _extract_nothing(body: str) -> dict[str, Any]:
    return {}


_EXTRACTORS: dict[ContextType, Callable[[str], dict[str, Any]]] = {
    ContextType.ASSISTANT_MEMORY: _extract_memory,
    ContextType.EDITOR_RULES: _extract_rules,
    ContextType.REVIEW_POLICY: _extract_review,
    ContextType.WORKSPACE_AGENT: _extract_agent,
    ContextType.GENERIC_PROMPT: _extract_nothing,
}


def extract_extras(context_type: ContextType, body: str) -> Mapping[str, Any]:
    """Type-specific extraction, returned read-only."""
    return MappingProxyType(_EXTRACTORS[context_type](body))


def dedup_and_prioritize(contexts: Iterable[DetectedContext]) -> list[DetectedContext]:
    """Drop None-confidence and repeated entries, then order by confidence and tier.

    The sort is stable: ties keep discovery order.
    """
    seen: set[tuple[bool, str]] = set()
    kept: list[DetectedContext] = []
    for ctx in contexts:
        key = (ctx.is_directory, ctx.relative_path)
        if ctx.confidence is ConfidenceLevel.NONE or key in seen:
            continue
        seen.add(key)
        kept.append(ctx)
    return sorted(kept, key=lambda c: (-c.confidence.rank, -int(c.signals.tier)))


class ContextDetector:
    """Builds DetectedContexts from enumerated files and directories.

    Args:
        reader: Text reader collaborator; returns None for unusable files
        text_extensions: Extensions whose content is read
    """

    def __init__(
        self,
        reader: Reader | None = None,
        *,
        text_extensions: Iterable[str] | None = None,
    ) -> None:
        self._reader: Reader = reader or read_text_file
        self._text_extensions = (
            frozenset(e.lower() for e in text_extensions)
            if text_extensions is not None
            else DEFAULT_TEXT_EXTENSIONS
        )

    def is_text(self, entry: FileEntry) -> bool:
        return entry.extension in self._text_extensions or entry.name in TEXT_FILENAMES

    def detect_all(
        self,
        files: Sequence[FileEntry],
        dirs: Sequence[DirEntry] = (),
        *,
        failures: list[DetectionFailure] | None = None,
    ) -> list[DetectedContext]:
        """Detect every artifact; one that raises is logged and left out.

        Args:
            failures: Collects ``(relative_path, error)`` for artifacts whose
                detection raised
        """
        contexts: list[DetectedContext] = []
        for entry in files:
            ctx = self._guarded(entry.relative_path, failures, self.detect_file, entry)
            if ctx is not None:
                contexts.append(ctx)
        for dir_entry in dirs:
            dir_ctx = self._guarded(dir_entry.relative_path, failures, self.detect_directory, dir_entry, files)
            if dir_ctx is not None:
                contexts.append(dir_ctx)

        result = dedup_and_prioritize(contexts)
        log.info("detection_complete", candidates=len(contexts), detected=len(result), failed=len(failures or ()))
        return result

    @staticmethod
    def _guarded(
        path: str,
        failures: list[DetectionFailure] | None,
        fn: Callable[..., DetectedContext | None],
        *args: Any,
    ) -> DetectedContext | None:
        try:
            return fn(*args)
        except Exception as e:
            log.exception("artifact_failed", path=path, stage="detect")
            if failures is not None:
                failures.append((path, InternalError.unexpected(str(e), type=type(e).__name__, path=path)))
            return None

    def _read(self, entry: FileEntry) -> str | None:
        try:
            return self._reader(entry)
        except (OSError, UnicodeDecodeError) as e:
            err = DetectionError.unreadable(entry.relative_path, str(e))
            log.debug("artifact_dropped", error=err.error_name, **err.details)
            return None

    def detect_file(self, entry: FileEntry) -> DetectedContext | None:
        context_type, _ = classify(entry.relative_path, entry.name)
        if context_type is None:
            return None

        if not self.is_text(entry):
            log.debug("artifact_dropped", path=entry.relative_path, reason="not a text file")
            return None
        content = self._read(entry)
        if content is None:
            return None
        if context_type is ContextType.GENERIC_PROMPT and not content.strip():
            log.debug("artifact_dropped", path=entry.relative_path, reason="empty")
            return None

        header: Mapping[str, Any]
        result = parse_header(content)
        if isinstance(result, Parsed):
            header, body, header_error = result.header, result.body, None
        else:
            header, body, header_error = {}, result.body, result.error
            if header_error:
                err = DetectionError.malformed_header(entry.relative_path, header_error)
                log.warning(
                    "malformed_header",
                    path=entry.relative_path,
                    reason=header_error,
                    code=err.code.value,
                )

        _, value = classify(entry.relative_path, entry.name, content)
        ctx = DetectedContext(
            type=context_type,
            score=value,
            confidence=confidence_for(value),
            name=entry.name,
            relative_path=entry.relative_path,
            absolute_path=entry.absolute_path,
            size=entry.size,
            modified_time=entry.modified_time,
            header=MappingProxyType(dict(header)),
            header_error=header_error,
            body=body,
            sections=tuple(split_sections(body)),
            flags=detect_flags(body, context_type),
            extras=extract_extras(context_type, body),
            word_count=count_words(body),
            line_count=len(content.splitlines()),
        )
        log.debug(
            "context_detected",
            path=ctx.relative_path,
            type=ctx.type.value,
            score=ctx.score,
            confidence=ctx.confidence.value,
        )
        return ctx

    def detect_directory(
        self,
        entry: DirEntry,
        files: Sequence[FileEntry],
    ) -> DetectedContext | None:
        signals = match_directory(entry.relative_path)
        if signals is None:
            return None

        prefix = entry.relative_path.rstrip("/") + "/"
        members = [f for f in files if f.relative_path.startswith(prefix)]
        if not members:
            return None

        relevant = sum(1 for f in members if f.extension in signals.relevant_extensions)
        value = directory_score(entry.name == signals.dir_name, relevant)
        mtimes = [f.modified_time for f in members if f.modified_time is not None]
        # Member paths are the only absolute anchor for a directory entry
        depth = members[0].relative_path.count("/") - entry.relative_path.rstrip("/").count("/")
        absolute = str(Path(members[0].absolute_path).parents[depth - 1])

        ctx = DetectedContext(
            type=signals.type,
            score=value,
            confidence=confidence_for(value),
            name=entry.name,
            relative_path=entry.relative_path,
            absolute_path=absolute,
            size=sum(f.size for f in members),
            modified_time=max(mtimes) if mtimes else None,
            is_directory=True,
            file_count=len(members),
            members=tuple(f.relative_path for f in members),
        )
        log.debug(
            "directory_detected",
            path=ctx.relative_path,
            type=ctx.type.value,
            files=ctx.file_count,
            confidence=ctx.confidence.value,
        )
        return ctx
