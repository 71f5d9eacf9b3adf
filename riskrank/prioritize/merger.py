"""Reconcile ranking entries with the authoritative findings."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from riskrank.exceptions import InvalidIndexReference
from riskrank.models import (
    DEFAULT_BUSINESS_IMPACT,
    DEFAULT_REMEDIATION,
    Confidence,
    NormalizedFinding,
    RankedFinding,
    RankingEntry,
)
from riskrank.prioritize.constants import TOP_N
from riskrank.prioritize.fallback import fallback_title
from riskrank.severity import normalize_severity

logger = logging.getLogger("riskrank.prioritize.merger")


def merge_entry(entry: RankingEntry, target: NormalizedFinding) -> RankedFinding:
    """Overlay one entry's narrative onto its finding.

    Location, snippet and the other raw fields always come from the
    finding; only narrative fields come from the entry.
    """
    raw = target.finding
    return RankedFinding(
        rank=entry.rank,
        title=entry.title or fallback_title(raw.id),
        explanation=entry.explanation or raw.message,
        severity=entry.severity or normalize_severity(raw.severity),
        confidence=entry.confidence or Confidence.MEDIUM,
        business_impact=entry.business_impact or DEFAULT_BUSINESS_IMPACT,
        remediation=entry.remediation or DEFAULT_REMEDIATION,
        id=raw.id,
        path=raw.path,
        start_line=raw.start_line,
        end_line=raw.end_line,
        message=raw.message,
        raw_severity=raw.severity,
        snippet=raw.snippet,
        metadata=raw.metadata,
    )


def merge_rankings(
    entries: Iterable[RankingEntry],
    findings: list[NormalizedFinding],
    limit: int = TOP_N,
) -> list[RankedFinding]:
    """Resolve, merge, sort by rank and cut to ``limit``.

    Ranks in the output are renumbered 1..N so they stay contiguous even
    when the source skipped a number.

    Raises:
        InvalidIndexReference: If an entry's ``original_index`` has no
            matching finding.
    """
    merged: list[RankedFinding] = []
    for entry in entries:
        if not 0 <= entry.original_index < len(findings):
            raise InvalidIndexReference(entry.original_index, len(findings))
        merged.append(merge_entry(entry, findings[entry.original_index]))

    merged.sort(key=lambda r: r.rank)
    merged = merged[:limit]
    for position, item in enumerate(merged, start=1):
        if item.rank != position:
            logger.debug("Renumbering rank %d → %d", item.rank, position)
            item.rank = position
    return merged
