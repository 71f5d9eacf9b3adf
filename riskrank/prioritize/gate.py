"""Severity gate: turn a ranked list into a pass/fail verdict."""

from __future__ import annotations

from collections.abc import Sequence

from riskrank.models import RankedFinding, Severity, Verdict
from riskrank.severity import parse_threshold, severity_ordinal


def evaluate_gate(
    ranked: Sequence[RankedFinding], threshold: str | Severity | None
) -> Verdict:
    """Fail if any finding is at or above ``threshold``.

    ``None`` disables the gate. Any other value must name one of the
    four severities.

    Raises:
        InvalidThreshold: On an unrecognized threshold.
    """
    if threshold is None:
        return Verdict(should_fail=False)

    level = parse_threshold(threshold)
    bar = severity_ordinal(level)
    offending = [r for r in ranked if severity_ordinal(r.severity) >= bar]
    if offending:
        return Verdict(should_fail=True, threshold=level, offending=offending)
    return Verdict(should_fail=False)
