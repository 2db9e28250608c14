"""CLI utilities."""

from __future__ import annotations

from pathlib import Path

import click

from ctxmigrate.config.loader import load_config
from ctxmigrate.config.models import CtxMigrateConfig
from ctxmigrate.core.errors import ConfigError
from ctxmigrate.core.excludes import build_prune_set
from ctxmigrate.core.logging import configure_logging
from ctxmigrate.detection.models import DirEntry, FileEntry
from ctxmigrate.detection.walker import enumerate_tree


def load_project_config(ctx: click.Context, root: Path) -> CtxMigrateConfig:
    """Load config for ``root`` and configure logging from it.

    ``-v`` on the group overrides the configured level.

    Raises:
        click.ClickException: If the configuration is invalid
    """
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    verbosity = (ctx.obj or {}).get("verbosity", 0)
    if verbosity:
        configure_logging(level="DEBUG" if verbosity > 1 else "INFO")
    else:
        configure_logging(config=config.logging)
    return config


def scan_tree(
    root: Path,
    config: CtxMigrateConfig,
    *,
    skip_under: Path | None = None,
) -> tuple[list[FileEntry], list[DirEntry]]:
    """Enumerate ``root`` with the configured prune set.

    Entries under ``skip_under`` (typically the output directory) are left
    out so a previous run's records are not re-detected as sources.
    """
    detection = config.detection
    prune = build_prune_set(set(detection.include_dirs), set(detection.extra_excluded_dirs))
    files, dirs = enumerate_tree(root, prune=prune)
    if skip_under is None:
        return files, dirs

    try:
        rel = skip_under.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return files, dirs
    if rel == ".":
        return files, dirs
    prefix = rel + "/"
    return (
        [f for f in files if not f.relative_path.startswith(prefix)],
        [d for d in dirs if d.relative_path != rel and not d.relative_path.startswith(prefix)],
    )
