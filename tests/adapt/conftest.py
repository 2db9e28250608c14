"""Shared fixtures for adapter tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from ctxmigrate.detection.detector import ContextDetector
from ctxmigrate.detection.models import DetectedContext, FileEntry


@pytest.fixture
def detect() -> Callable[[str, str], DetectedContext]:
    """Run the detector over one in-memory artifact."""

    def _detect(relative_path: str, text: str) -> DetectedContext:
        entry = FileEntry(
            name=relative_path.rsplit("/", 1)[-1],
            relative_path=relative_path,
            absolute_path=f"/project/{relative_path}",
            size=len(text),
        )
        ctx = ContextDetector(lambda _: text).detect_file(entry)
        assert ctx is not None, relative_path
        return ctx

    return _detect
