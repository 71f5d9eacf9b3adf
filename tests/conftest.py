"""Shared fixtures for RiskRank tests."""

import pytest

from riskrank import config
from riskrank.models import Finding, ProjectContext
from riskrank.prioritize.normalizer import normalize_findings


@pytest.fixture(autouse=True)
def reset_riskrank_config(monkeypatch, tmp_path):
    """Isolate every test from the caller's LLM credentials and database."""
    for var in (
        "RISKRANK_LLM_PROVIDER",
        "RISKRANK_LLM_MODEL",
        "RISKRANK_LLM_BASE_URL",
        "RISKRANK_LLM_API_KEY",
        "GROQ_API_KEY",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("RISKRANK_DB", str(tmp_path / "riskrank.db"))
    config.reload()
    yield
    config.reload()


def _make_finding(
    rule_id="rules.generic.example",
    severity="INFO",
    message="",
    path="src/app.py",
    line=1,
    snippet=None,
):
    return Finding(
        id=rule_id,
        path=path,
        start_line=line,
        end_line=line,
        message=message,
        severity=severity,
        snippet=snippet,
    )


@pytest.fixture
def make_finding():
    """Factory for raw findings."""
    return _make_finding


@pytest.fixture
def findings(make_finding):
    """Three findings with no risk keywords: warning, error, info."""
    return [
        make_finding("rules.style.unused-import", "WARNING", "Unused import", "a.py", 3),
        make_finding("rules.style.shadowed-builtin", "ERROR", "Shadowed builtin", "b.py", 7),
        make_finding("rules.style.long-line", "INFO", "Line too long", "c.py", 11),
    ]


@pytest.fixture
def normalized(findings):
    return normalize_findings(findings)


@pytest.fixture
def context():
    return ProjectContext(
        name="shop-api",
        version="1.2.0",
        frameworks=["Express"],
        dependencies={"express": "^4.18.0", "jsonwebtoken": "^9.0.0"},
    )
