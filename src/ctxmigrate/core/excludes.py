"""Directory exclusion sets for project tree enumeration.

Tier 0 (HARDCODED_DIRS): never traversed, not configurable.
    - VCS internals and ctxmigrate's own state directory

Tier 1 (DEFAULT_PRUNABLE_DIRS): dependency, cache and build directories.
    - Skipped by default; config ``detection.include_dirs`` opts one back in

Assistant context directories (``.claude``, ``.cursor``, ``.windsurf``,
``.github``, ``.ai``, ``prompts``) must never appear in either tier.
"""

from __future__ import annotations

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # ctxmigrate state
        ".ctxmigrate",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # JavaScript/Node.js
        "node_modules",
        ".npm",
        ".yarn",
        ".pnpm-store",
        "bower_components",
        ".next",
        ".nuxt",
        ".turbo",
        # Python
        "venv",
        ".venv",
        ".virtualenv",
        "virtualenv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        ".eggs",
        "site-packages",
        ".ipynb_checkpoints",
        "htmlcov",
        # Ruby
        ".bundle",
        # Rust / JVM / .NET build output
        "target",
        ".gradle",
        "bin",
        "obj",
        # Generic build/output directories
        "dist",
        "build",
        "out",
        "coverage",
        ".nyc_output",
        # IDE directories that never hold assistant context
        ".idea",
        ".vs",
        # Misc caches
        ".cache",
        "tmp",
        "temp",
        "vendor",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def is_hardcoded_dir(dirname: str) -> bool:
    """Check if directory is hardcoded (never traversable, not overridable)."""
    return dirname in HARDCODED_DIRS


def is_default_prunable(dirname: str) -> bool:
    """Check if directory is prunable by default (but config can override)."""
    return dirname in DEFAULT_PRUNABLE_DIRS


def build_prune_set(
    include_dirs: frozenset[str] | set[str] = frozenset(),
    extra_excluded: frozenset[str] | set[str] = frozenset(),
) -> frozenset[str]:
    """Resolve the effective prune set.

    ``include_dirs`` can only re-enable tier 1 directories; hardcoded
    directories stay excluded.
    """
    reenabled = {d for d in include_dirs if not is_hardcoded_dir(d)}
    return frozenset((PRUNABLE_DIRS - reenabled) | set(extra_excluded))
