from riskrank.cli import cli

cli()
