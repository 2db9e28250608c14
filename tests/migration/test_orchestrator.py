"""Tests for the migration orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from ctxmigrate.adapt.adapter import Adapter
from ctxmigrate.config.models import CtxMigrateConfig, MigrationConfig
from ctxmigrate.detection.detector import ContextDetector
from ctxmigrate.detection.models import DetectedContext, FileEntry
from ctxmigrate.detection.walker import enumerate_tree, read_text_file
from ctxmigrate.migration.orchestrator import (
    DIRECTORY_SKIP_REASON,
    MigrationOrchestrator,
    MigrationRunResult,
)
from ctxmigrate.records.document import parse_document, render_document
from ctxmigrate.records.models import CanonicalRecord
from ctxmigrate.records.sink import DirectorySink, NullSink
from ctxmigrate.schema.normalizer import SchemaNormalizer

FIXED_NOW = datetime(2026, 1, 2, tzinfo=UTC)
MEMORY_TEXT = "# Project Memory\n\nThis file records the shared conventions for our team here.\n"


def _write(root: Path, files: Mapping[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def _orchestrator(sink: Any = None, *, adapter: Adapter | None = None, workers: int = 1) -> MigrationOrchestrator:
    return MigrationOrchestrator(
        ContextDetector(),
        adapter or Adapter(clock=lambda: FIXED_NOW),
        SchemaNormalizer(),
        sink if sink is not None else NullSink(),
        workers=workers,
    )


def _run(root: Path, orchestrator: MigrationOrchestrator) -> MigrationRunResult:
    files, dirs = enumerate_tree(root)
    return orchestrator.run(files, dirs)


class _ExplodingAdapter(Adapter):
    def __init__(self, fail_path: str) -> None:
        super().__init__(clock=lambda: FIXED_NOW)
        self.fail_path = fail_path

    def adapt(self, ctx: DetectedContext) -> CanonicalRecord:
        if ctx.relative_path == self.fail_path:
            raise RuntimeError("adapter exploded")
        return super().adapt(ctx)


class _FailingSink:
    def write(self, header: Mapping[str, Any], body: str) -> str | None:
        raise OSError("disk full")


class TestRun:
    def test_duplicate_ids_first_wins(self, tmp_path: Path) -> None:
        root = _write(tmp_path, {"CLAUDE.md": MEMORY_TEXT, "pkg/CLAUDE.md": MEMORY_TEXT})

        result = _run(root, _orchestrator())

        assert result.processed == 2
        assert len(result.converted) == 1
        assert result.converted[0].source_path == "CLAUDE.md"
        assert len(result.duplicates) == 1
        assert result.duplicates[0].path == "pkg/CLAUDE.md"
        assert result.duplicates[0].code == "SCHEMA_DUPLICATE_ID"
        assert result.summary() == {
            "processed": 2,
            "converted": 1,
            "skipped": 0,
            "duplicates": 1,
            "errors": 0,
        }

    def test_writes_records_to_sink(self, tmp_path: Path) -> None:
        root = _write(tmp_path / "project", {"CLAUDE.md": MEMORY_TEXT})
        out = tmp_path / "out"

        result = _run(root, _orchestrator(DirectorySink(out)))

        written = out / "memory-claude.blueprint.md"
        assert result.converted[0].output == str(written)
        document = parse_document(written.read_text(encoding="utf-8"))
        assert document.header["id"] == "memory-claude"
        assert document.header["migration"]["originalPath"] == "CLAUDE.md"
        assert SchemaNormalizer().validate(document.header).valid

    def test_directory_contexts_are_skipped(self, tmp_path: Path) -> None:
        root = _write(
            tmp_path,
            {".cursor/a.md": "Always test.", ".cursor/b.md": "Never guess.", ".cursor/c.md": "Prefer clarity."},
        )

        result = _run(root, _orchestrator())

        assert [d.path for d in result.skipped] == [".cursor"]
        assert result.skipped[0].message == DIRECTORY_SKIP_REASON
        assert len(result.converted) == 3
        assert result.processed == 4

    def test_failure_is_isolated(self, tmp_path: Path) -> None:
        root = _write(tmp_path, {"CLAUDE.md": MEMORY_TEXT, ".cursorrules": "Always type-hint Python code."})

        result = _run(root, _orchestrator(adapter=_ExplodingAdapter(".cursorrules")))

        assert [r.source_path for r in result.converted] == ["CLAUDE.md"]
        assert len(result.failed) == 1
        failure = result.failed[0]
        assert failure.path == ".cursorrules"
        assert failure.stage == "adapt"
        assert failure.code == "INTERNAL_ERROR"
        assert "adapter exploded" in failure.message
        assert not result.ok

    def test_detection_failure_is_isolated(self, tmp_path: Path) -> None:
        root = _write(tmp_path, {"CLAUDE.md": MEMORY_TEXT, ".cursorrules": "Always type-hint Python code."})

        def reader(entry: FileEntry) -> str | None:
            if entry.name == "CLAUDE.md":
                raise RuntimeError("reader exploded")
            return read_text_file(entry)

        orchestrator = MigrationOrchestrator(
            ContextDetector(reader), Adapter(clock=lambda: FIXED_NOW), SchemaNormalizer(), NullSink()
        )
        result = _run(root, orchestrator)

        assert [r.source_path for r in result.converted] == [".cursorrules"]
        assert [(d.path, d.stage, d.code) for d in result.failed] == [("CLAUDE.md", "detect", "INTERNAL_ERROR")]
        assert "reader exploded" in result.failed[0].message
        assert result.processed == 2

    def test_impossible_header_date_still_converts(self, tmp_path: Path) -> None:
        root = _write(
            tmp_path,
            {
                "CLAUDE.md": "---\nupdated: 2024-13-01\n---\n" + MEMORY_TEXT,
                ".cursorrules": "Always type-hint Python code.",
            },
        )

        result = _run(root, _orchestrator())

        assert result.failed == []
        assert sorted(r.source_path for r in result.converted) == [".cursorrules", "CLAUDE.md"]
        memory = next(c for c in result.detected if c.relative_path == "CLAUDE.md")
        assert memory.header_error is not None

    def test_validation_failure_lists_every_error(self, tmp_path: Path) -> None:
        root = _write(tmp_path, {"CLAUDE.md": "# " + "T" * 120 + "\n\nA paragraph that is long enough to use.\n"})

        result = _run(root, _orchestrator())

        assert result.converted == []
        failure = result.failed[0]
        assert failure.stage == "validate"
        assert failure.code == "SCHEMA_VALIDATION_FAILED"
        assert failure.details["errors"] == ["Field 'title' must not exceed 100 characters"]

    def test_sink_failure_recorded(self, tmp_path: Path) -> None:
        root = _write(tmp_path, {"CLAUDE.md": MEMORY_TEXT})

        result = _run(root, _orchestrator(_FailingSink()))

        assert result.converted == []
        assert result.failed[0].stage == "write"
        assert result.failed[0].message == "disk full"

    def test_parallel_run_matches_sequential(self, tmp_path: Path) -> None:
        files = {
            "CLAUDE.md": MEMORY_TEXT,
            "pkg/CLAUDE.md": MEMORY_TEXT,
            ".cursorrules": "Always type-hint Python code.",
            ".cursor/rules/react.mdc": "Use React function components with TypeScript.",
            ".github/copilot-instructions.md": "Security review: check auth on every endpoint.",
            ".windsurfrules": "<rules>Use cascade for big edits</rules>",
            ".claude/commands/deploy.md": "Deploy with $ARGUMENTS",
        }
        root = _write(tmp_path, files)

        sequential = _run(root, _orchestrator())
        parallel = _run(root, _orchestrator(workers=4))

        assert parallel.summary() == sequential.summary()
        assert [r.id for r in parallel.converted] == [r.id for r in sequential.converted]
        assert [d.path for d in parallel.duplicates] == [d.path for d in sequential.duplicates]
        assert [r.header for r in parallel.converted] == [r.header for r in sequential.converted]

    def test_to_dict_is_serializable(self, tmp_path: Path) -> None:
        import json

        root = _write(tmp_path, {"CLAUDE.md": MEMORY_TEXT, "pkg/CLAUDE.md": MEMORY_TEXT})

        payload = json.loads(json.dumps(_run(root, _orchestrator()).to_dict()))

        assert payload["summary"]["duplicates"] == 1
        assert payload["converted"][0]["id"] == "memory-claude"
        assert payload["detected"][0]["path"] == "CLAUDE.md"


class TestRunDocuments:
    def _legacy_text(self) -> str:
        header = {
            "id": "python-style",
            "title": "Python Style",
            "description": "Python style rules for every service.",
            "version": "1.0.0",
            "category": "language",
            "platforms": {"cursor": True},
        }
        return render_document(header, "Use black for formatting.\n")

    def test_migrates_validates_and_writes(self, tmp_path: Path) -> None:
        source = tmp_path / "in" / "python-style.md"
        _write(tmp_path, {"in/python-style.md": self._legacy_text()})
        out = tmp_path / "out"

        result = _orchestrator(DirectorySink(out)).run_documents([source])

        assert result.summary()["converted"] == 1
        assert len(result.converted[0].changes) == 5
        written = parse_document((out / "python-style.blueprint.md").read_text(encoding="utf-8"))
        assert written.header["platforms"] == {"cursor": {"compatible": True}}
        assert written.body == "Use black for formatting.\n"

    def test_canonical_documents_skipped_unless_forced(self, tmp_path: Path) -> None:
        _write(tmp_path, {"python-style.md": self._legacy_text()})
        first = _orchestrator(DirectorySink(tmp_path / "out")).run_documents([tmp_path / "python-style.md"])
        migrated = tmp_path / "out" / "python-style.blueprint.md"
        assert first.converted

        again = _orchestrator().run_documents([migrated])
        forced = MigrationOrchestrator(
            ContextDetector(), Adapter(), SchemaNormalizer(), NullSink(), force=True
        ).run_documents([migrated])

        assert again.summary()["skipped"] == 1
        assert again.converted == []
        assert forced.summary()["converted"] == 1
        assert forced.converted[0].changes == ()

    def test_canonical_documents_are_still_validated(self, tmp_path: Path) -> None:
        _write(tmp_path, {"python-style.md": self._legacy_text()})
        _orchestrator(DirectorySink(tmp_path / "out")).run_documents([tmp_path / "python-style.md"])
        migrated = parse_document((tmp_path / "out" / "python-style.blueprint.md").read_text(encoding="utf-8"))
        header = migrated.header | {"requires": ["python-style"], "conflicts": ["python-style"]}
        _write(tmp_path, {"tangled.md": render_document(header, migrated.body)})

        result = _orchestrator().run_documents([tmp_path / "tangled.md"])

        assert result.skipped == []
        assert len(result.failed) == 1
        failure = result.failed[0]
        assert failure.stage == "validate"
        assert failure.code == "SCHEMA_VALIDATION_FAILED"
        assert "Cannot both require and conflict with: python-style" in failure.details["errors"]

    def test_bad_documents_are_failures(self, tmp_path: Path) -> None:
        _write(tmp_path, {"broken.md": "---\nid: [oops\n---\nbody\n"})

        result = _orchestrator().run_documents([tmp_path / "broken.md", tmp_path / "missing.md"])

        assert result.processed == 2
        assert [(d.stage, d.code) for d in result.failed] == [
            ("parse", "DETECTION_MALFORMED_HEADER"),
            ("read", "DETECTION_UNREADABLE_ARTIFACT"),
        ]

    def test_duplicate_documents(self, tmp_path: Path) -> None:
        _write(tmp_path, {"a.md": self._legacy_text(), "b.md": self._legacy_text()})

        result = _orchestrator().run_documents([tmp_path / "a.md", tmp_path / "b.md"])

        assert result.summary()["converted"] == 1
        assert result.duplicates[0].path == str(tmp_path / "b.md")


class TestFromConfig:
    def test_dry_run_uses_null_sink(self, tmp_path: Path) -> None:
        orchestrator = MigrationOrchestrator.from_config(CtxMigrateConfig(), root=tmp_path, dry_run=True)

        assert isinstance(orchestrator.sink, NullSink)

    def test_relative_output_resolved_against_root(self, tmp_path: Path) -> None:
        config = CtxMigrateConfig(migration=MigrationConfig(workers=3, output_dir="records"))

        orchestrator = MigrationOrchestrator.from_config(config, root=tmp_path)

        assert isinstance(orchestrator.sink, DirectorySink)
        assert orchestrator.sink.output_dir == tmp_path / "records"
        assert orchestrator.workers == 3

    @pytest.mark.parametrize("workers", [1, 2])
    def test_overrides(self, tmp_path: Path, workers: int) -> None:
        orchestrator = MigrationOrchestrator.from_config(
            CtxMigrateConfig(), root=tmp_path, output_dir=tmp_path / "x", workers=workers, force=True
        )

        assert orchestrator.workers == workers
        assert orchestrator.force is True
