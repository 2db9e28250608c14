"""On-disk record document codec: ``---`` YAML header block, then body text."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

import yaml

from ctxmigrate.core.errors import DetectionError
from ctxmigrate.detection.analyzer import Parsed, parse_header


@dataclass(frozen=True, slots=True)
class RecordDocument:
    header: dict[str, Any]
    body: str


def _plain(value: Any) -> Any:
    """Coerce to types yaml.safe_dump can represent."""
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def render_document(header: Mapping[str, Any], body: str) -> str:
    dumped = yaml.safe_dump(
        _plain(header),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=100,
    )
    text = body.strip("\n")
    return f"---\n{dumped}---\n\n{text}\n" if text else f"---\n{dumped}---\n"


def parse_document(text: str, path: str = "<string>") -> RecordDocument:
    """Parse a record document.

    A document without a header parses to an empty header. A broken header
    is an error here, unlike during detection.

    Raises:
        DetectionError: Header present but malformed.
    """
    result = parse_header(text)
    if isinstance(result, Parsed):
        return RecordDocument(header=result.header, body=result.body.lstrip("\n"))
    if result.error is not None:
        raise DetectionError.malformed_header(path, result.error)
    return RecordDocument(header={}, body=result.body)
