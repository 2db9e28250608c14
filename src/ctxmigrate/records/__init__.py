"""Records module - canonical record model, document codec and sinks."""

from ctxmigrate.records.document import RecordDocument, parse_document, render_document
from ctxmigrate.records.models import (
    CanonicalRecord,
    CommandSpec,
    MigrationInfo,
    PlatformCapability,
)
from ctxmigrate.records.sink import DirectorySink, NullSink, RecordSink

__all__ = [
    "CanonicalRecord",
    "CommandSpec",
    "DirectorySink",
    "MigrationInfo",
    "NullSink",
    "PlatformCapability",
    "RecordDocument",
    "RecordSink",
    "parse_document",
    "render_document",
]
