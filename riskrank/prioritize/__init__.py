"""RiskRank prioritization engine."""

from .engine import PrioritizationEngine, PrioritizationResult
from .fallback import fallback_prioritization, rank_by_heuristics
from .gate import evaluate_gate
from .merger import merge_rankings
from .normalizer import normalize_findings

__all__ = [
    "PrioritizationEngine",
    "PrioritizationResult",
    "evaluate_gate",
    "fallback_prioritization",
    "merge_rankings",
    "normalize_findings",
    "rank_by_heuristics",
]
