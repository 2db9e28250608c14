"""User-facing status output for CLI commands.

All console output goes to stderr so ``--json`` payloads on stdout stay
machine-readable. Messages are rich markup; escape untrusted text
(paths, error messages) with ``rich.markup.escape`` before passing it in.
"""

from __future__ import annotations

from rich.console import Console

from ctxmigrate.core.logging import get_logger

log = get_logger("progress")

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

CONFIDENCE_STYLES = {"high": "green", "medium": "yellow", "low": "dim"}


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one status line, prefixed with a marker for ``style``."""
    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    log.debug("status", message=message, style=style)


def styled_confidence(level: str) -> str:
    """Confidence bucket wrapped in its color markup."""
    color = CONFIDENCE_STYLES.get(level)
    return f"[{color}]{level}[/{color}]" if color else level


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 record" / "3 records" style counts."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"
