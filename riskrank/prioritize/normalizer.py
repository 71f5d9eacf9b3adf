"""Canonicalize raw findings before ranking."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from riskrank.models import Finding, NormalizedFinding
from riskrank.prioritize.constants import MAX_SNIPPET_CHARS
from riskrank.severity import severity_key


def bound_snippet(snippet: str | None, limit: int = MAX_SNIPPET_CHARS) -> str:
    """Trim whitespace and cut to ``limit`` characters."""
    if not snippet:
        return ""
    return snippet.strip()[:limit]


def normalize_findings(
    findings: Iterable[Finding | Mapping[str, Any]],
) -> list[NormalizedFinding]:
    """Normalize findings, keeping order and count.

    Each record gets its 0-based position as ``index``. Raw fields are
    never modified.

    Raises:
        ValueError: If a record has neither ``id`` nor ``path``.
    """
    normalized: list[NormalizedFinding] = []
    for i, raw in enumerate(findings):
        finding = raw if isinstance(raw, Finding) else Finding.from_dict(dict(raw))
        if not finding.is_valid:
            raise ValueError(f"Finding #{i} has neither id nor path")
        normalized.append(
            NormalizedFinding(
                index=i,
                finding=finding,
                severity_key=severity_key(finding.severity),
                snippet=bound_snippet(finding.snippet),
            )
        )
    return normalized
