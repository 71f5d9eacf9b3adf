"""Semgrep adapter: run the scanner and map its JSON report to Findings."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from riskrank.exceptions import ScannerError
from riskrank.models import Finding

logger = logging.getLogger("riskrank.scanner")

SEMGREP_INSTALL_HINT = (
    "Semgrep is not installed or not in PATH. Please install it first: "
    "https://semgrep.dev/docs/getting-started/"
)


def run_semgrep(target: str | Path, timeout: int = 600) -> list[Finding]:
    """Scan ``target`` with Semgrep and return its findings.

    Semgrep exits 1 when it reports findings; that is not a failure as
    long as stdout holds a JSON report.

    Raises:
        ScannerError: Semgrep missing, timed out, or produced no usable report.
    """
    cmd = ["semgrep", "scan", "--json", "--quiet", str(target)]
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ScannerError(SEMGREP_INSTALL_HINT) from e
    except subprocess.TimeoutExpired as e:
        raise ScannerError(f"Semgrep timed out after {timeout}s") from e

    if proc.returncode not in (0, 1) and not proc.stdout.strip():
        raise ScannerError(
            f"Semgrep failed (exit={proc.returncode}): {proc.stderr.strip()[:500]}"
        )
    return parse_semgrep_output(proc.stdout)


def parse_semgrep_output(text: str) -> list[Finding]:
    """Map a Semgrep JSON report onto Findings.

    Blank output or a report without ``results`` means no findings.
    Records with neither rule id nor path are dropped.
    """
    if not text or not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ScannerError(
            "Failed to parse semgrep JSON output. It might be corrupted."
        ) from e

    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        return []

    findings: list[Finding] = []
    dropped = 0
    for r in results:
        if not isinstance(r, dict):
            dropped += 1
            continue
        finding = _to_finding(r)
        if finding.is_valid:
            findings.append(finding)
        else:
            dropped += 1
    if dropped:
        logger.warning("Dropped %d malformed semgrep results", dropped)
    return findings


def load_results_file(path: str | Path) -> list[Finding]:
    """Parse a pre-computed Semgrep JSON report from disk."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ScannerError(f"Could not read results file {p}: {e}") from e
    return parse_semgrep_output(text)


def _to_finding(result: dict[str, Any]) -> Finding:
    extra = result.get("extra") or {}
    start = result.get("start") or {}
    end = result.get("end") or {}
    return Finding(
        id=result.get("check_id"),
        path=result.get("path"),
        start_line=start.get("line"),
        end_line=end.get("line"),
        message=extra.get("message") or "",
        severity=extra.get("severity") or "",
        snippet=extra.get("lines"),
        metadata=extra.get("metadata"),
    )
