"""Default file-tree enumerator and text reader collaborators."""

from __future__ import annotations

import os
from pathlib import Path

from ctxmigrate.core.excludes import PRUNABLE_DIRS
from ctxmigrate.core.logging import get_logger
from ctxmigrate.detection.models import DirEntry, FileEntry

log = get_logger(__name__)

DEFAULT_MAX_BYTES = 512 * 1024

# Extensionless or dot-only names that are known to hold text
TEXT_FILENAMES: frozenset[str] = frozenset(
    {".cursorrules", "cursorrules", ".cursor-rules", ".copilotrc", ".windsurfrc", ".windsurfrules"}
)


def enumerate_tree(
    root: Path,
    *,
    prune: frozenset[str] = PRUNABLE_DIRS,
) -> tuple[list[FileEntry], list[DirEntry]]:
    """Walk ``root``, pruning dependency/cache/VCS directories.

    Entries come back in a deterministic (sorted, top-down) order with
    "/"-separated relative paths.
    """
    root = root.resolve()
    files: list[FileEntry] = []
    dirs: list[DirEntry] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in prune)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        for dirname in dirnames:
            dirs.append(DirEntry(name=dirname, relative_path=f"{prefix}{dirname}"))

        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            try:
                stat = path.stat()
            except OSError as e:
                log.debug("stat_failed", path=str(path), error=str(e))
                continue
            files.append(
                FileEntry(
                    name=filename,
                    relative_path=f"{prefix}{filename}",
                    absolute_path=str(path),
                    size=stat.st_size,
                    modified_time=stat.st_mtime,
                )
            )

    log.debug("tree_enumerated", root=str(root), files=len(files), dirs=len(dirs))
    return files, dirs


def read_text_file(entry: FileEntry, *, max_bytes: int = DEFAULT_MAX_BYTES) -> str | None:
    """Read an artifact as UTF-8 text.

    Returns None for oversize, binary (NUL-containing), undecodable or
    unreadable files.
    """
    if entry.size > max_bytes:
        log.debug("artifact_oversize", path=entry.relative_path, size=entry.size)
        return None
    try:
        data = Path(entry.absolute_path).read_bytes()
    except OSError as e:
        log.debug("artifact_unreadable", path=entry.relative_path, error=str(e))
        return None
    if len(data) > max_bytes:
        log.debug("artifact_oversize", path=entry.relative_path, size=len(data))
        return None
    if b"\x00" in data:
        log.debug("artifact_binary", path=entry.relative_path)
        return None
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        log.debug("artifact_undecodable", path=entry.relative_path, error=str(e))
        return None
