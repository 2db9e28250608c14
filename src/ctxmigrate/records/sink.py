"""Persistence collaborators for canonical records."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from ctxmigrate.core.logging import get_logger
from ctxmigrate.records.document import render_document

log = get_logger(__name__)


class RecordSink(Protocol):
    """Receives records that passed validation and won the id registry."""

    def write(self, header: Mapping[str, Any], body: str) -> str | None:
        """Persist one record.

        Returns:
            Location written, or None when nothing is persisted.
        """
        ...


def record_filename(header: Mapping[str, Any]) -> str:
    return f"{header['id']}.{header.get('type') or 'blueprint'}.md"


class DirectorySink:
    """Writes ``<id>.<type>.md`` documents into one directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def write(self, header: Mapping[str, Any], body: str) -> str | None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / record_filename(header)
        path.write_text(render_document(header, body), encoding="utf-8")
        log.debug("record_written", path=str(path))
        return str(path)


class NullSink:
    """Dry-run sink. Keeps the rendered documents in memory."""

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}

    def write(self, header: Mapping[str, Any], body: str) -> str | None:
        self.documents[record_filename(header)] = render_document(header, body)
        return None
