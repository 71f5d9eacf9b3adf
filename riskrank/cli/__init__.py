"""
RiskRank CLI — Package init.

Re-exports the main CLI group and shared utilities.
"""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console

from riskrank import __version__
from riskrank import config

console = Console()


def default_db() -> str:
    """Database path from the current configuration (``RISKRANK_DB``)."""
    return str(config.DB_PATH)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_async(coro):
    """Helper to run async coroutines from sync CLI."""
    return asyncio.run(coro)


# ─── Main Group ──────────────────────────────────────────────────

@click.group()
@click.version_option(__version__, prog_name="riskrank")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """RiskRank — AI-Powered Static Code Analysis Prioritization."""
    setup_logging(verbose)


# ─── Register all sub-modules ───────────────────────────────────
from riskrank.cli import scan_cmds  # noqa: E402, F401
from riskrank.cli import history_cmds  # noqa: E402, F401


if __name__ == "__main__":
    cli()
