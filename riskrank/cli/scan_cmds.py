"""CLI command: scan."""

from __future__ import annotations

import contextlib
import json
import sqlite3
import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from riskrank import config
from riskrank.cli import _run_async, cli, console, default_db
from riskrank.context import extract_project_context
from riskrank.exceptions import ScannerError
from riskrank.models import RankedFinding, Severity, Strategy
from riskrank.prioritize import PrioritizationEngine, evaluate_gate
from riskrank.scanner import load_results_file, run_semgrep
from riskrank.store import ScanStore

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

FAIL_ON_CHOICES = [s.value.lower() for s in Severity]


def _location(item: RankedFinding) -> str:
    return f"{item.path or '?'}:{item.start_line or '?'}"


def render_findings(findings: list[RankedFinding], strategy: Strategy) -> None:
    """Print the Top N as a summary table followed by one panel per finding."""
    source = "AI" if strategy is Strategy.AI else "fallback heuristics"
    table = Table(title=f"🎯 RiskRank Top {len(findings)} ({source})")
    table.add_column("#", style="bold", width=4)
    table.add_column("Severity", width=10)
    table.add_column("Title", width=36)
    table.add_column("Location", width=40)
    for item in findings:
        style = SEVERITY_STYLES.get(item.severity, "white")
        table.add_row(
            str(item.rank),
            f"[{style}]{item.severity.value}[/]",
            escape(item.title),
            escape(_location(item)),
        )
    console.print(table)

    for item in findings:
        style = SEVERITY_STYLES.get(item.severity, "white")
        body = [
            f"[bold]File:[/]       {escape(_location(item))}",
            f"[bold]Rule:[/]       {escape(item.id or 'Unknown Issue')}",
            f"[bold]Severity:[/]   [{style}]{item.severity.value}[/] "
            f"[dim]({escape(item.raw_severity or 'n/a')})[/]",
            f"[bold]Confidence:[/] {item.confidence.value}",
            "",
            "[bold]Why it is a risk:[/]",
            escape(item.explanation or item.message or "No description provided."),
            "",
            "[bold]Business impact:[/]",
            escape(item.business_impact),
            "",
            "[bold]Remediation:[/]",
            escape(item.remediation),
        ]
        if item.snippet:
            body += ["", "[bold]Code Snippet:[/]"]
            body += [f"[dim]  {escape(line)}[/]" for line in item.snippet.strip().splitlines()]
        border = "red" if item.rank <= 3 else "magenta"
        console.print(
            Panel(
                "\n".join(body),
                title=f"[bold]#{item.rank} {escape(item.title)}[/]",
                title_align="left",
                border_style=border,
            )
        )

    console.print(
        f"\n[bold cyan]Total prioritized findings displayed: {len(findings)} (Max Top 10)[/]"
    )


@cli.command()
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("-k", "--key", default=None, help="LLM API key (overrides GROQ_API_KEY / RISKRANK_LLM_API_KEY)")
@click.option("-p", "--provider", default=None, help="LLM provider preset (default: groq)")
@click.option("-m", "--model", default=None, help="LLM model (default: the provider's preset)")
@click.option(
    "--fail-on",
    type=click.Choice(FAIL_ON_CHOICES, case_sensitive=False),
    default=None,
    help="Exit 1 if any prioritized finding is at or above this severity",
)
@click.option(
    "--results",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Use a pre-computed Semgrep JSON report instead of running semgrep",
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--save", is_flag=True, help="Persist the scan to the local database")
@click.option("--db", default=default_db, help="Database path")
def scan(directory, key, provider, model, fail_on, results, as_json, save, db):
    """Run a static analysis scan and prioritize findings."""
    provider = provider or config.LLM_PROVIDER
    api_key = config.resolve_api_key(provider, key)
    say = (lambda *args, **kwargs: None) if as_json else console.print

    def status(message: str):
        return contextlib.nullcontext() if as_json else console.status(message)

    say(f"[cyan]Starting RiskRank on directory: {escape(directory)}[/]\n")

    with status("[bold blue]Analyzing project context...[/]"):
        context = extract_project_context(directory)
    say(f"[green]✓[/] Context extracted: {escape(context.name or 'Unknown project')}")

    try:
        if results:
            findings = load_results_file(results)
        else:
            with status("[bold blue]Running Semgrep scanner (this may take a moment)...[/]"):
                findings = run_semgrep(directory, timeout=config.SCAN_TIMEOUT)
    except ScannerError as e:
        if as_json:
            click.echo(json.dumps({"project": context.name, "error": str(e), "kind": e.kind}))
        else:
            console.print(f"[bold red]✗ Scan failed:[/] {escape(str(e))}")
        sys.exit(1)
    say(f"[green]✓[/] Scan complete. Found {len(findings)} raw issues.")

    if not findings:
        if as_json:
            click.echo(json.dumps({"project": context.name, "strategy": None,
                                   "totalRaw": 0, "findings": [], "shouldFail": False}))
        else:
            console.print("\n[bold green]🎉 Great job! No security issues found.[/]")
        return

    engine = PrioritizationEngine(
        api_key=api_key,
        model=model or config.LLM_MODEL or None,
        provider=provider,
        base_url=config.LLM_BASE_URL or None,
        timeout=config.LLM_TIMEOUT,
    )
    if engine.select_strategy() is Strategy.FALLBACK:
        say("[cyan]ℹ[/] No LLM API key found. Using fallback prioritization.")

    with status(f"[bold blue]Prioritizing findings ({provider})...[/]"):
        result = _run_async(engine.prioritize(findings, context))

    if result.fell_back:
        say("[yellow]⚠ AI analysis failed, falling back to basic prioritization.[/]")
        say(f"[yellow]AI Error: {escape(str(result.error))}[/]")
    elif result.strategy is Strategy.AI:
        say("[green]✓[/] AI analysis complete.")

    verdict = evaluate_gate(result.findings, fail_on)

    if save:
        try:
            with ScanStore(db) as store:
                scan_id = store.save_scan(context, result.findings, findings, result.strategy)
            say(f"[green]✓[/] Scan results saved as [bold]#{scan_id}[/]")
        except (sqlite3.Error, OSError) as e:
            console.print(f"[red]✗ Failed to save results: {escape(str(e))}[/]")

    if as_json:
        click.echo(
            json.dumps(
                {
                    "project": context.name,
                    "strategy": result.strategy.value,
                    "aiError": str(result.error) if result.error else None,
                    "totalRaw": len(findings),
                    "findings": [f.to_dict() for f in result.findings],
                    "shouldFail": verdict.should_fail,
                    "failOn": verdict.threshold.value if verdict.threshold else None,
                },
                indent=2,
            )
        )
    else:
        render_findings(result.findings, result.strategy)

    if verdict.should_fail:
        say(
            f"\n[bold red]⛔ {len(verdict.offending)} finding(s) at or above "
            f"{verdict.threshold.value} severity (--fail-on {fail_on.lower()})[/]"
        )
        sys.exit(verdict.exit_code)
