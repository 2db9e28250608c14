"""ctxmigrate CLI - ctxm command."""

import click

from ctxmigrate import __version__
from ctxmigrate.cli.migrate import migrate_command
from ctxmigrate.cli.scan import scan_command
from ctxmigrate.cli.schema_migrate import schema_migrate_command


@click.group()
@click.version_option(version=__version__, prog_name="ctxm")
@click.option("-v", "--verbose", "verbosity", count=True, help="Increase log verbosity (-vv for debug)")
@click.pass_context
def cli(ctx: click.Context, verbosity: int) -> None:
    """ctxmigrate - Migrate AI assistant context files to canonical records."""
    ctx.ensure_object(dict)
    ctx.obj["verbosity"] = verbosity


cli.add_command(scan_command, name="scan")
cli.add_command(migrate_command, name="migrate")
cli.add_command(schema_migrate_command, name="schema-migrate")


if __name__ == "__main__":
    cli()
