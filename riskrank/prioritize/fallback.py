"""Deterministic fallback prioritization.

Used when no LLM credential is configured or the AI path fails. Pure:
the same input always yields the same ranking, ties included.
"""

from __future__ import annotations

from riskrank.models import Confidence, NormalizedFinding, RankedFinding, RankingEntry
from riskrank.prioritize.constants import (
    BASE_SCORES,
    DEFAULT_BASE_SCORE,
    FALLBACK_BUSINESS_IMPACT,
    FALLBACK_REMEDIATION,
    HIGH_CONFIDENCE_KEYS,
    HIGH_RISK_BONUS,
    HIGH_RISK_KEYWORDS,
    MEDIUM_RISK_BONUS,
    MEDIUM_RISK_KEYWORDS,
    TOP_N,
    UNKNOWN_TITLE,
)
from riskrank.severity import normalize_severity


def score_finding(finding: NormalizedFinding) -> int:
    """Severity base score plus a bonus for every risk keyword present."""
    score = BASE_SCORES.get(finding.severity_key, DEFAULT_BASE_SCORE)

    haystack = f"{finding.message or ''} {finding.id or ''}".lower()
    for kw in HIGH_RISK_KEYWORDS:
        if kw in haystack:
            score += HIGH_RISK_BONUS
    for kw in MEDIUM_RISK_KEYWORDS:
        if kw in haystack:
            score += MEDIUM_RISK_BONUS
    return score


def fallback_title(rule_id: str | None) -> str:
    """``python.lang.security.audit.hardcoded-password`` → ``HARDCODED PASSWORD``."""
    if not rule_id:
        return UNKNOWN_TITLE
    last = rule_id.split(".")[-1]
    return last.replace("-", " ").replace("_", " ").upper()


def rank_by_heuristics(
    findings: list[NormalizedFinding], limit: int = TOP_N
) -> list[RankingEntry]:
    """Score, stable-sort descending and keep the Top ``limit``."""
    scored = [(score_finding(f), f) for f in findings]
    # sorted() is stable: equal scores keep input order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)[:limit]

    entries: list[RankingEntry] = []
    for position, (_score, f) in enumerate(scored, start=1):
        entries.append(
            RankingEntry(
                original_index=f.index,
                rank=position,
                title=fallback_title(f.id),
                explanation=f.message,
                business_impact=FALLBACK_BUSINESS_IMPACT,
                remediation=FALLBACK_REMEDIATION,
                confidence=(
                    Confidence.HIGH
                    if f.severity_key in HIGH_CONFIDENCE_KEYS
                    else Confidence.MEDIUM
                ),
                severity=normalize_severity(f.finding.severity),
            )
        )
    return entries


def fallback_prioritization(
    findings: list[NormalizedFinding], limit: int = TOP_N
) -> list[RankedFinding]:
    """Full fallback path: heuristic ranking merged onto the findings."""
    from riskrank.prioritize.merger import merge_rankings

    return merge_rankings(rank_by_heuristics(findings, limit), findings, limit)
