from taskrunner.cli import cli

cli()
