"""
Tests for severity normalization, ordinals and threshold parsing.
"""

import pytest

from riskrank.exceptions import InvalidThreshold
from riskrank.models import Severity
from riskrank.severity import (
    normalize_severity,
    parse_threshold,
    severity_key,
    severity_ordinal,
)


class TestNormalizeSeverity:
    @pytest.mark.parametrize(
        "token, expected",
        [
            ("ERROR", Severity.CRITICAL),
            ("critical", Severity.CRITICAL),
            ("High", Severity.HIGH),
            ("WARNING", Severity.MEDIUM),
            ("medium", Severity.MEDIUM),
            ("moderate", Severity.MEDIUM),
            ("INFO", Severity.LOW),
            ("low", Severity.LOW),
            ("  Warning  ", Severity.MEDIUM),
        ],
    )
    def test_known_tokens(self, token, expected):
        assert normalize_severity(token) is expected

    @pytest.mark.parametrize("token", ["", None, "bogus", "INVENTORY", "sev1"])
    def test_unknown_tokens_are_low(self, token):
        assert normalize_severity(token) is Severity.LOW

    def test_enum_passthrough(self):
        assert normalize_severity(Severity.HIGH) is Severity.HIGH

    def test_always_one_of_four(self):
        for token in ["ERROR", "WARNING", "INFO", "EXPERIMENT", "", "x" * 50]:
            assert normalize_severity(token) in set(Severity)

    def test_severity_key(self):
        assert severity_key("  ERROR ") == "error"
        assert severity_key(None) == ""


class TestOrdinals:
    def test_ordering(self):
        assert severity_ordinal(Severity.CRITICAL) == 4
        assert severity_ordinal(Severity.HIGH) == 3
        assert severity_ordinal(Severity.MEDIUM) == 2
        assert severity_ordinal(Severity.LOW) == 1

    def test_string_values(self):
        assert severity_ordinal("critical") == 4
        assert severity_ordinal("Medium") == 2

    def test_unrecognized_is_one(self):
        assert severity_ordinal("catastrophic") == 1
        assert severity_ordinal(None) == 1


class TestParseThreshold:
    @pytest.mark.parametrize("value", ["critical", "HIGH", "Medium", "low"])
    def test_valid(self, value):
        assert parse_threshold(value).value.lower() == value.lower()

    @pytest.mark.parametrize("value", ["", "error", "warning", "severe", "none"])
    def test_invalid_raises(self, value):
        with pytest.raises(InvalidThreshold, match="Unknown severity threshold"):
            parse_threshold(value)

    def test_invalid_threshold_is_value_error(self):
        with pytest.raises(ValueError):
            parse_threshold("urgent")
