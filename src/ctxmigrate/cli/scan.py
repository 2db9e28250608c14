"""ctxm scan command - list AI context artifacts without converting them."""

import json
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ctxmigrate.cli.utils import load_project_config, scan_tree
from ctxmigrate.core.formatting import compress_path, truncate_at_word
from ctxmigrate.core.progress import get_console, pluralize, status, styled_confidence
from ctxmigrate.detection.detector import ContextDetector, DetectionFailure
from ctxmigrate.detection.models import DetectedContext
from ctxmigrate.detection.walker import read_text_file


def _make_detection_table(contexts: list[DetectedContext]) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Path", style="cyan")
    table.add_column("Source")
    table.add_column("Confidence")
    table.add_column("Score", justify="right")
    table.add_column("Details", style="dim")

    for ctx in contexts:
        if ctx.is_directory:
            details = pluralize(ctx.file_count, "file")
        else:
            details = pluralize(len(ctx.sections), "section")
            if ctx.header_error:
                details += f", malformed header ({escape(truncate_at_word(ctx.header_error, 32))})"
        table.add_row(
            escape(compress_path(ctx.relative_path + ("/" if ctx.is_directory else ""), 48)),
            ctx.display_name,
            styled_confidence(ctx.confidence.value),
            str(ctx.score),
            details,
        )
    return table


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan_command(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Detect AI assistant context artifacts.

    PATH is the project root (default: current directory).
    """
    root = path.resolve()
    config = load_project_config(ctx, root)
    max_bytes = config.detection.max_file_size_kb * 1024

    files, dirs = scan_tree(root, config, skip_under=root / config.migration.output_dir)
    detector = ContextDetector(
        lambda entry: read_text_file(entry, max_bytes=max_bytes),
        text_extensions=config.detection.text_extensions,
    )
    failures: list[DetectionFailure] = []
    contexts = detector.detect_all(files, dirs, failures=failures)

    if as_json:
        payload = {
            "root": str(root),
            "contexts": [c.to_dict() for c in contexts],
            "failed": [{"path": path, **err.to_dict()} for path, err in failures],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for path, err in failures:
        status(f"{escape(path)}: {escape(err.message)}", style="error")

    if not contexts:
        status("No AI context artifacts found", style="warning")
        return

    get_console().print(_make_detection_table(contexts))
    status(f"Found {pluralize(len(contexts), 'artifact')}", style="success")
