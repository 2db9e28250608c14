"""ctxm migrate command - convert detected artifacts into canonical records."""

import json
import time
from pathlib import Path

import click
from rich.markup import escape

from ctxmigrate.cli.utils import load_project_config, scan_tree
from ctxmigrate.core.formatting import compress_path, format_duration
from ctxmigrate.core.logging import clear_run_id, get_log_file_path, set_run_id
from ctxmigrate.core.progress import pluralize, status
from ctxmigrate.migration.orchestrator import MigrationOrchestrator, MigrationRunResult


def report_result(result: MigrationRunResult, *, elapsed: float, dry_run: bool) -> None:
    """Print the per-artifact outcome lines and the summary."""
    for record in result.converted:
        target = compress_path(record.output, 48) if record.output else "(dry run)"
        status(escape(f"{record.source_path} -> {target}"), style="success", indent=2)
        for change in record.changes:
            status(escape(change), style="info", indent=6)
    for diag in result.duplicates:
        status(escape(f"{diag.path}: {diag.message}"), style="warning", indent=2)
    for diag in result.failed:
        status(escape(f"{diag.path} [{diag.stage}]: {diag.message}"), style="error", indent=2)

    counts = result.summary()
    verb = "Would convert" if dry_run else "Converted"
    status(
        f"{verb} {pluralize(counts['converted'], 'record')} "
        f"({counts['processed']} processed, {counts['skipped']} skipped, "
        f"{pluralize(counts['duplicates'], 'duplicate')}, {pluralize(counts['errors'], 'error')}) "
        f"in {format_duration(elapsed)}",
        style="error" if counts["errors"] else "success",
    )
    if (log_file := get_log_file_path()) is not None:
        status(escape(f"Log file: {log_file}"), style="info")


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: migration.output_dir under PATH)",
)
@click.option("--dry-run", is_flag=True, help="Convert and validate without writing")
@click.option("--workers", type=click.IntRange(1, 64), help="Worker threads for conversion")
@click.option("--force", is_flag=True, help="Re-run schema migration on canonical records")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def migrate_command(
    ctx: click.Context,
    path: Path,
    output: Path | None,
    dry_run: bool,
    workers: int | None,
    force: bool,
    as_json: bool,
) -> None:
    """Convert AI assistant context artifacts into canonical records.

    PATH is the project root (default: current directory).
    """
    root = path.resolve()
    config = load_project_config(ctx, root)
    output_dir = output or Path(config.migration.output_dir)
    if not output_dir.is_absolute():
        output_dir = (Path.cwd() / output_dir) if output else (root / output_dir)

    orchestrator = MigrationOrchestrator.from_config(
        config,
        root=root,
        output_dir=output_dir,
        dry_run=dry_run,
        workers=workers,
        force=force or None,
    )

    set_run_id()
    started = time.monotonic()
    try:
        if not as_json:
            status(f"Scanning {root}")
        files, dirs = scan_tree(root, config, skip_under=output_dir)
        result = orchestrator.run(files, dirs)
    finally:
        clear_run_id()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        report_result(result, elapsed=time.monotonic() - started, dry_run=dry_run)

    if result.failed:
        ctx.exit(1)
