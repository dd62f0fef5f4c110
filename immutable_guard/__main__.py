from immutable_guard.cli import cli

cli()
