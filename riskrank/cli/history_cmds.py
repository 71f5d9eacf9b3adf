"""CLI commands: history, status, providers."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.table import Table

from riskrank.cli import cli, console, default_db
from riskrank.llm.provider import PROVIDER_PRESETS, LLMProvider
from riskrank.store import REVIEW_STATUSES, ScanStore


@cli.command()
@click.argument("project", required=False)
@click.option("--limit", "-n", default=10, help="Max results")
@click.option("--db", default=default_db, help="Database path")
def history(project, limit, db):
    """Show saved scans, newest first."""
    with ScanStore(db) as store:
        scans = store.list_scans(project, limit=limit)
    if not scans:
        scope = f" for '{escape(project)}'" if project else ""
        console.print(f"[dim]No saved scans{scope}.[/]")
        return

    table = Table(title="📊 RiskRank History")
    table.add_column("ID", style="bold")
    table.add_column("Date", no_wrap=True)
    table.add_column("Project", style="cyan", no_wrap=True)
    table.add_column("Strategy")
    table.add_column("Top/Raw")
    table.add_column("C/H/M/L")
    table.add_column("Status", no_wrap=True)
    for s in scans:
        m = s["metrics"]
        table.add_row(
            str(s["id"]),
            s["created_at"][:19],
            escape(s["project_name"]),
            s["strategy"],
            f"{s['total_prioritized']}/{s['total_raw']}",
            f"{m.get('critical', 0)}/{m.get('high', 0)}/{m.get('medium', 0)}/{m.get('low', 0)}",
            s["status"],
        )
    console.print(table)


@cli.command()
@click.argument("scan_id", type=int)
@click.argument("status", type=click.Choice(REVIEW_STATUSES, case_sensitive=False))
@click.option("--db", default=default_db, help="Database path")
def status(scan_id, status, db):
    """Set the review status of a saved scan."""
    canonical = next(s for s in REVIEW_STATUSES if s.lower() == status.lower())
    with ScanStore(db) as store:
        updated = store.set_status(scan_id, canonical)
    if not updated:
        console.print(f"[red]✗ Scan #{scan_id} not found.[/]")
        sys.exit(1)
    console.print(f"[green]✓[/] Scan [bold]#{scan_id}[/] → {canonical}")


@cli.command()
def providers():
    """List the LLM provider presets."""
    table = Table(title="🤖 LLM Providers")
    table.add_column("Provider", style="bold cyan", width=12)
    table.add_column("Default model", width=50)
    table.add_column("API key variable", width=20)
    for name in LLMProvider.list_providers():
        preset = PROVIDER_PRESETS.get(name)
        if preset is None:
            table.add_row(name, "[dim](set with --model)[/]", "RISKRANK_LLM_API_KEY")
        else:
            table.add_row(name, preset["default_model"], preset["env_key"] or "[dim]none[/]")
    console.print(table)
