from ctxmigrate.cli.main import cli

cli()
