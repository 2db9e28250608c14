"""ctxm schema-migrate command - upgrade existing record documents."""

import json
import time
from pathlib import Path

import click

from ctxmigrate.cli.migrate import report_result
from ctxmigrate.cli.utils import load_project_config
from ctxmigrate.core.logging import clear_run_id, set_run_id
from ctxmigrate.core.progress import status
from ctxmigrate.migration.orchestrator import MigrationOrchestrator


def collect_documents(target: Path) -> list[Path]:
    """A single file, or every ``*.md`` below a directory in sorted order."""
    if target.is_file():
        return [target]
    return sorted(p for p in target.rglob("*.md") if p.is_file())


@click.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: the INPUT directory)",
)
@click.option("--force", is_flag=True, help="Migrate records that are already canonical")
@click.option("--dry-run", is_flag=True, help="Migrate and validate without writing")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def schema_migrate_command(
    ctx: click.Context,
    input_path: Path,
    output: Path | None,
    force: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Upgrade legacy or partial record documents to the current schema.

    INPUT is a record file or a directory of records.
    """
    target = input_path.resolve()
    root = target if target.is_dir() else target.parent
    config = load_project_config(ctx, root)
    output_dir = output.resolve() if output else root

    orchestrator = MigrationOrchestrator.from_config(
        config,
        root=root,
        output_dir=output_dir,
        dry_run=dry_run,
        force=force,
    )

    set_run_id()
    started = time.monotonic()
    try:
        paths = collect_documents(target)
        if not as_json:
            status(f"Migrating {len(paths)} document(s) in {root}")
        result = orchestrator.run_documents(paths)
    finally:
        clear_run_id()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        report_result(result, elapsed=time.monotonic() - started, dry_run=dry_run)

    if result.failed:
        ctx.exit(1)
