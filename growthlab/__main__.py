"""Entry point for ``python -m growthlab``."""

from growthlab.cli.commands import app

app()
