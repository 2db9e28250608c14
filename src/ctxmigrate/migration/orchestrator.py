"""Migration orchestration.

Runs detect -> adapt -> migrate -> validate -> write for every artifact.
Per-artifact stages never abort the run: each failure becomes a diagnostic.
Registration of canonical ids and writes happen in one sequential pass in
discovery order, so a parallel run yields the same result as a serial one.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from ctxmigrate.adapt.adapter import Adapter
from ctxmigrate.config.models import CtxMigrateConfig
from ctxmigrate.core.errors import CtxMigrateError, DetectionError, InternalError, SchemaError
from ctxmigrate.core.logging import get_logger
from ctxmigrate.detection.detector import ContextDetector, DetectionFailure
from ctxmigrate.detection.models import DetectedContext, DirEntry, FileEntry
from ctxmigrate.detection.walker import read_text_file
from ctxmigrate.records.document import parse_document
from ctxmigrate.records.sink import DirectorySink, NullSink, RecordSink
from ctxmigrate.schema.contract import load_contracts
from ctxmigrate.schema.normalizer import SchemaNormalizer

log = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DIRECTORY_SKIP_REASON = "directory-level context; members processed individually"
ALREADY_CANONICAL_REASON = "already canonical"


@dataclass(frozen=True, slots=True)
class ArtifactDiagnostic:
    """Why one artifact produced no record."""

    path: str
    stage: str
    message: str
    code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, path: str, stage: str, error: CtxMigrateError) -> ArtifactDiagnostic:
        return cls(
            path=path,
            stage=stage,
            message=error.message,
            code=error.error_name,
            details=dict(error.details),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "stage": self.stage,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


@dataclass(frozen=True, slots=True)
class ConvertedRecord:
    id: str
    kind: str
    source_path: str
    output: str | None
    header: dict[str, Any]
    body: str
    changes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind,
            "source": self.source_path,
            "output": self.output,
            "changes": list(self.changes),
        }


@dataclass
class MigrationRunResult:
    """Accumulated outcome of one run."""

    detected: list[DetectedContext] = field(default_factory=list)
    converted: list[ConvertedRecord] = field(default_factory=list)
    skipped: list[ArtifactDiagnostic] = field(default_factory=list)
    failed: list[ArtifactDiagnostic] = field(default_factory=list)
    duplicates: list[ArtifactDiagnostic] = field(default_factory=list)
    processed: int = 0

    def summary(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "converted": len(self.converted),
            "skipped": len(self.skipped),
            "duplicates": len(self.duplicates),
            "errors": len(self.failed),
        }

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary(),
            "detected": [ctx.to_dict() for ctx in self.detected],
            "converted": [rec.to_dict() for rec in self.converted],
            "skipped": [d.to_dict() for d in self.skipped],
            "failed": [d.to_dict() for d in self.failed],
            "duplicates": [d.to_dict() for d in self.duplicates],
        }


@dataclass(frozen=True, slots=True)
class _Candidate:
    """A record that passed validation and awaits id registration."""

    source_path: str
    header: dict[str, Any]
    body: str
    changes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class _Skipped:
    diagnostic: ArtifactDiagnostic


_Outcome = _Candidate | _Skipped | ArtifactDiagnostic


class MigrationOrchestrator:
    """Drives artifacts through the migration pipeline.

    Args:
        detector: Builds DetectedContexts from the enumerated tree
        adapter: Maps contexts to canonical records
        normalizer: Migrates and validates record headers
        sink: Receives every record that wins its id
        workers: Thread count for the per-artifact stages
        force: Re-run schema migration on already canonical records
    """

    def __init__(
        self,
        detector: ContextDetector,
        adapter: Adapter,
        normalizer: SchemaNormalizer,
        sink: RecordSink,
        *,
        workers: int = 1,
        force: bool = False,
    ) -> None:
        self.detector = detector
        self.adapter = adapter
        self.normalizer = normalizer
        self.sink = sink
        self.workers = max(1, workers)
        self.force = force

    @classmethod
    def from_config(
        cls,
        config: CtxMigrateConfig,
        *,
        root: Path,
        output_dir: Path | None = None,
        dry_run: bool = False,
        workers: int | None = None,
        force: bool | None = None,
    ) -> MigrationOrchestrator:
        """Wire default collaborators from configuration.

        A relative configured output directory is resolved against ``root``.
        """
        detection = config.detection
        max_bytes = detection.max_file_size_kb * 1024

        def reader(entry: FileEntry) -> str | None:
            return read_text_file(entry, max_bytes=max_bytes)

        contracts_dir = Path(config.contracts.directory) if config.contracts.directory else None
        sink: RecordSink
        if dry_run:
            sink = NullSink()
        else:
            target = output_dir or Path(config.migration.output_dir)
            sink = DirectorySink(target if target.is_absolute() else root / target)

        return cls(
            detector=ContextDetector(reader, text_extensions=detection.text_extensions),
            adapter=Adapter(config.adapter),
            normalizer=SchemaNormalizer(load_contracts(contracts_dir)),
            sink=sink,
            workers=workers if workers is not None else config.migration.workers,
            force=force if force is not None else config.migration.force,
        )

    # -- runs -----------------------------------------------------------------

    def run(self, files: Sequence[FileEntry], dirs: Sequence[DirEntry] = ()) -> MigrationRunResult:
        """Detect and convert every AI context artifact in the tree."""
        failures: list[DetectionFailure] = []
        result = MigrationRunResult(detected=self.detector.detect_all(files, dirs, failures=failures))
        result.processed = len(failures)
        result.failed.extend(ArtifactDiagnostic.from_error(path, "detect", err) for path, err in failures)
        outcomes = self._map(self._convert_context, result.detected)
        self._fold(result, zip((c.relative_path for c in result.detected), outcomes, strict=True))
        log.info("migration_complete", **result.summary())
        return result

    def run_documents(self, paths: Sequence[Path]) -> MigrationRunResult:
        """Schema-migrate existing record documents on disk."""
        result = MigrationRunResult()
        outcomes = self._map(self._convert_document, paths)
        self._fold(result, zip((str(p) for p in paths), outcomes, strict=True))
        log.info("schema_migration_complete", **result.summary())
        return result

    # -- per-artifact stages --------------------------------------------------

    def _map(self, fn: Callable[[T], R], items: Sequence[T]) -> Iterator[R]:
        if self.workers == 1 or len(items) < 2:
            return map(fn, items)
        with ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="ctxmigrate-worker",
        ) as executor:
            # Drained before the pool shuts down
            return iter(list(executor.map(fn, items)))

    def _convert_context(self, ctx: DetectedContext) -> _Outcome:
        if ctx.is_directory:
            return _Skipped(ArtifactDiagnostic(ctx.relative_path, "detect", DIRECTORY_SKIP_REASON))

        stage = "adapt"
        try:
            record = self.adapter.adapt(ctx)
            stage = "normalize"
            outcome = self.normalizer.migrate(record.to_header(), record.body, force=self.force)
            stage = "validate"
            self._validate(outcome.record)
        except CtxMigrateError as e:
            log.warning("artifact_failed", path=ctx.relative_path, stage=stage, error=e.error_name)
            return ArtifactDiagnostic.from_error(ctx.relative_path, stage, e)
        except Exception as e:
            log.exception("artifact_failed", path=ctx.relative_path, stage=stage)
            err = InternalError.unexpected(str(e), type=type(e).__name__)
            return ArtifactDiagnostic.from_error(ctx.relative_path, stage, err)

        return _Candidate(ctx.relative_path, outcome.record, record.body, outcome.changes)

    def _convert_document(self, path: Path) -> _Outcome:
        stage = "read"
        try:
            text = path.read_text(encoding="utf-8")
            stage = "parse"
            document = parse_document(text, str(path))
            stage = "normalize"
            outcome = self.normalizer.migrate(document.header, document.body, force=self.force)
            stage = "validate"
            # Canonical shape does not imply contract compliance
            self._validate(outcome.record)
            if outcome.skipped:
                return _Skipped(ArtifactDiagnostic(str(path), "normalize", ALREADY_CANONICAL_REASON))
        except CtxMigrateError as e:
            log.warning("artifact_failed", path=str(path), stage=stage, error=e.error_name)
            return ArtifactDiagnostic.from_error(str(path), stage, e)
        except (OSError, UnicodeDecodeError) as e:
            log.warning("artifact_failed", path=str(path), stage=stage, error=str(e))
            return ArtifactDiagnostic.from_error(str(path), stage, DetectionError.unreadable(str(path), str(e)))
        except Exception as e:
            log.exception("artifact_failed", path=str(path), stage=stage)
            err = InternalError.unexpected(str(e), type=type(e).__name__)
            return ArtifactDiagnostic.from_error(str(path), stage, err)

        return _Candidate(str(path), outcome.record, document.body, outcome.changes)

    def _validate(self, header: dict[str, Any]) -> None:
        validation = self.normalizer.validate(header)
        if not validation.valid:
            raise SchemaError.validation_failed(header.get("id"), list(validation.errors))

    # -- sequential fold --------------------------------------------------------

    def _fold(self, result: MigrationRunResult, outcomes: Iterable[tuple[str, _Outcome]]) -> None:
        registry: dict[str, str] = {}
        for path, outcome in outcomes:
            result.processed += 1
            if isinstance(outcome, _Skipped):
                result.skipped.append(outcome.diagnostic)
                continue
            if isinstance(outcome, ArtifactDiagnostic):
                result.failed.append(outcome)
                continue

            record_id = str(outcome.header["id"])
            if record_id in registry:
                err = SchemaError.duplicate_id(record_id, registry[record_id], path)
                log.warning("duplicate_id", id=record_id, path=path, first_path=registry[record_id])
                result.duplicates.append(ArtifactDiagnostic.from_error(path, "register", err))
                continue
            registry[record_id] = path

            try:
                written = self.sink.write(outcome.header, outcome.body)
            except Exception as e:
                log.exception("artifact_failed", path=path, stage="write")
                result.failed.append(ArtifactDiagnostic(path, "write", str(e), code=type(e).__name__))
                continue

            result.converted.append(
                ConvertedRecord(
                    id=record_id,
                    kind=str(outcome.header.get("type") or "blueprint"),
                    source_path=path,
                    output=written,
                    header=outcome.header,
                    body=outcome.body,
                    changes=outcome.changes,
                )
            )
