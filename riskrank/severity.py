"""Severity normalization shared by scoring, merging, gating and storage."""

from __future__ import annotations

from riskrank.exceptions import InvalidThreshold
from riskrank.models import Severity

_TOKEN_MAP: dict[str, Severity] = {
    "critical": Severity.CRITICAL,
    "error": Severity.CRITICAL,
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "warning": Severity.MEDIUM,
}

SEVERITY_ORDINALS: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


def severity_key(token: str | None) -> str:
    """Lower-cased, trimmed form of a raw severity token."""
    return (token or "").strip().lower()


def normalize_severity(token: str | Severity | None) -> Severity:
    """Map any scanner or LLM severity token onto the four-level scale.

    Unknown tokens (``INFO``, empty, typos) land on ``Low``.
    """
    if isinstance(token, Severity):
        return token
    return _TOKEN_MAP.get(severity_key(token), Severity.LOW)


def severity_ordinal(value: str | Severity | None) -> int:
    """Critical=4, High=3, Medium=2, Low=1. Unrecognized values count as 1."""
    if isinstance(value, Severity):
        return SEVERITY_ORDINALS[value]
    for sev in Severity:
        if severity_key(value) == sev.value.lower():
            return SEVERITY_ORDINALS[sev]
    return 1


def parse_threshold(value: str | Severity) -> Severity:
    """Strictly parse a gate threshold (case-insensitive).

    Raises:
        InvalidThreshold: If ``value`` is not Critical, High, Medium or Low.
    """
    if isinstance(value, Severity):
        return value
    key = severity_key(value) if isinstance(value, str) else ""
    for sev in Severity:
        if key == sev.value.lower():
            return sev
    supported = ", ".join(s.value.lower() for s in Severity)
    raise InvalidThreshold(
        f"Unknown severity threshold {value!r}. Supported: {supported}"
    )
