"""
RiskRank — Business-risk prioritization for static analysis findings.

Turns a flat list of raw SAST findings into a force-ranked Top 10,
using an LLM when one is configured and a deterministic heuristic
when it is not (or when it fails).
"""

__version__ = "1.0.0"
__author__ = "RiskRank Contributors"

from riskrank.prioritize import PrioritizationEngine, evaluate_gate

__all__ = ["PrioritizationEngine", "evaluate_gate", "__version__"]
