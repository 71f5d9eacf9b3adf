"""Tests for the severity gate."""

import pytest

from riskrank.exceptions import InvalidThreshold
from riskrank.models import RankedFinding, Severity
from riskrank.prioritize.gate import evaluate_gate


def ranked(*severities):
    return [
        RankedFinding(rank=i, title=f"T{i}", explanation="", severity=s)
        for i, s in enumerate(severities, start=1)
    ]


class TestEvaluateGate:
    def test_medium_threshold_fails_on_medium(self):
        verdict = evaluate_gate(ranked(Severity.LOW, Severity.MEDIUM), "medium")
        assert verdict.should_fail
        assert verdict.threshold is Severity.MEDIUM
        assert [r.severity for r in verdict.offending] == [Severity.MEDIUM]
        assert verdict.exit_code == 1

    def test_medium_threshold_passes_on_low(self):
        verdict = evaluate_gate(ranked(Severity.LOW), "medium")
        assert not verdict.should_fail
        assert verdict.offending == []
        assert verdict.exit_code == 0

    def test_low_threshold_fails_any_finding(self):
        assert evaluate_gate(ranked(Severity.LOW), "low").should_fail

    def test_low_threshold_passes_empty_list(self):
        assert not evaluate_gate([], "low").should_fail

    def test_critical_only_trips_on_critical(self):
        assert not evaluate_gate(ranked(Severity.HIGH, Severity.MEDIUM), "critical").should_fail
        assert evaluate_gate(ranked(Severity.HIGH, Severity.CRITICAL), "critical").should_fail

    def test_high_counts_everything_above(self):
        verdict = evaluate_gate(
            ranked(Severity.CRITICAL, Severity.LOW, Severity.HIGH, Severity.MEDIUM), "high"
        )
        assert [r.rank for r in verdict.offending] == [1, 3]

    @pytest.mark.parametrize("threshold", ["HIGH", "High", " high ", Severity.HIGH])
    def test_threshold_forms(self, threshold):
        assert evaluate_gate(ranked(Severity.HIGH), threshold).should_fail

    def test_no_threshold_never_fails(self):
        verdict = evaluate_gate(ranked(Severity.CRITICAL), None)
        assert not verdict.should_fail
        assert verdict.threshold is None

    @pytest.mark.parametrize("threshold", ["urgent", "", "error"])
    def test_invalid_threshold_rejected(self, threshold):
        with pytest.raises(InvalidThreshold, match="Unknown severity threshold"):
            evaluate_gate(ranked(Severity.LOW), threshold)

    def test_invalid_threshold_is_value_error(self):
        with pytest.raises(ValueError):
            evaluate_gate([], "bogus")
