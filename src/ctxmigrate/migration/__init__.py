"""Migration module - run artifacts through detect, adapt, migrate and write."""

from ctxmigrate.migration.orchestrator import (
    ArtifactDiagnostic,
    ConvertedRecord,
    MigrationOrchestrator,
    MigrationRunResult,
)

__all__ = [
    "ArtifactDiagnostic",
    "ConvertedRecord",
    "MigrationOrchestrator",
    "MigrationRunResult",
]
