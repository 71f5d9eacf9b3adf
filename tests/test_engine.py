"""
Tests for the prioritization orchestrator.

Strategy selection, the AI → fallback transition on every classified
failure, and the invariants of the final result.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from riskrank.exceptions import (
    CollaboratorUnavailable,
    InvalidIndexReference,
    MalformedResponse,
)
from riskrank.llm.ranker import AIRanker
from riskrank.models import Strategy
from riskrank.prioritize import PrioritizationEngine
from riskrank.prioritize.fallback import fallback_prioritization
from riskrank.prioritize.normalizer import normalize_findings


def ranker_returning(response: str) -> AIRanker:
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.complete = AsyncMock(return_value=response)
    provider.close = AsyncMock()
    return AIRanker(provider)


def ranker_raising(exc: Exception) -> AIRanker:
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.complete = AsyncMock(side_effect=exc)
    provider.close = AsyncMock()
    return AIRanker(provider)


AI_RESPONSE = json.dumps([
    {"originalIndex": 2, "rank": 1, "title": "LONG LINE", "explanation": "e",
     "businessImpact": "b", "remediation": "r", "confidence": "High", "severity": "High"},
    {"originalIndex": 0, "rank": 2, "title": "UNUSED IMPORT", "explanation": "e",
     "businessImpact": "b", "remediation": "r", "confidence": "Low", "severity": "Low"},
])


# ─── Strategy Selection ──────────────────────────────────────────────


class TestSelectStrategy:
    def test_no_credential_selects_fallback(self):
        assert PrioritizationEngine().select_strategy() is Strategy.FALLBACK

    def test_credential_selects_ai(self):
        assert PrioritizationEngine(api_key="gsk-test").select_strategy() is Strategy.AI

    def test_injected_ranker_selects_ai(self):
        engine = PrioritizationEngine(ranker=ranker_returning("[]"))
        assert engine.select_strategy() is Strategy.AI

    def test_local_provider_selects_ai(self):
        assert PrioritizationEngine(provider="ollama").select_strategy() is Strategy.AI

    def test_custom_without_url_selects_fallback(self):
        assert PrioritizationEngine(provider="custom").select_strategy() is Strategy.FALLBACK


# ─── Prioritize ──────────────────────────────────────────────────────


class TestPrioritize:
    @pytest.mark.asyncio
    async def test_fallback_without_credential(self, findings, context):
        result = await PrioritizationEngine().prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert result.error is None
        assert not result.fell_back
        assert [r.path for r in result.findings] == ["b.py", "a.py", "c.py"]
        assert result.total_raw == 3

    @pytest.mark.asyncio
    async def test_ai_success(self, findings, context):
        engine = PrioritizationEngine(ranker=ranker_returning(AI_RESPONSE))
        result = await engine.prioritize(findings, context)
        assert result.strategy is Strategy.AI
        assert [r.path for r in result.findings] == ["c.py", "a.py"]
        assert [r.rank for r in result.findings] == [1, 2]
        assert result.findings[0].title == "LONG LINE"

    @pytest.mark.asyncio
    async def test_fenced_response_same_as_plain(self, findings, context):
        plain = await PrioritizationEngine(
            ranker=ranker_returning(AI_RESPONSE)
        ).prioritize(findings, context)
        fenced = await PrioritizationEngine(
            ranker=ranker_returning(f"```json\n{AI_RESPONSE}\n```")
        ).prioritize(findings, context)
        assert fenced.strategy is Strategy.AI
        assert [r.to_dict() for r in fenced.findings] == [r.to_dict() for r in plain.findings]

    @pytest.mark.asyncio
    async def test_fabricated_index_falls_back(self, make_finding, context):
        raw = [make_finding(f"rules.r{i}", "WARNING", path=f"f{i}.py") for i in range(5)]
        response = json.dumps([{"originalIndex": 999, "rank": 1}])
        result = await PrioritizationEngine(
            ranker=ranker_returning(response)
        ).prioritize(raw, context)

        assert result.strategy is Strategy.FALLBACK
        assert isinstance(result.error, InvalidIndexReference)
        expected = fallback_prioritization(normalize_findings(raw))
        assert [r.to_dict() for r in result.findings] == [r.to_dict() for r in expected]
        assert {r.path for r in result.findings} <= {f.path for f in raw}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        ["not json at all", '{"top": []}', '[{"rank": 1}]', '[{"originalIndex": 0, "rank": 42}]'],
    )
    async def test_malformed_response_falls_back(self, findings, context, response):
        result = await PrioritizationEngine(
            ranker=ranker_returning(response)
        ).prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert isinstance(result.error, MalformedResponse)
        assert result.fell_back

    @pytest.mark.asyncio
    async def test_repeated_finding_falls_back(self, findings, context):
        response = json.dumps([
            {"originalIndex": 1, "rank": 1},
            {"originalIndex": 1, "rank": 2},
            {"originalIndex": 1, "rank": 3},
        ])
        result = await PrioritizationEngine(
            ranker=ranker_returning(response)
        ).prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert isinstance(result.error, MalformedResponse)
        paths = [r.path for r in result.findings]
        assert len(set(paths)) == len(paths) == 3

    @pytest.mark.asyncio
    async def test_empty_ranking_falls_back(self, findings, context):
        result = await PrioritizationEngine(
            ranker=ranker_returning("[]")
        ).prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert isinstance(result.error, MalformedResponse)
        assert len(result.findings) == 3

    @pytest.mark.asyncio
    async def test_collaborator_unavailable_falls_back(self, findings, context):
        engine = PrioritizationEngine(
            ranker=ranker_raising(CollaboratorUnavailable("groq returned HTTP 401"))
        )
        result = await engine.prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert "401" in str(result.error)
        assert len(result.findings) == 3

    @pytest.mark.asyncio
    async def test_index_valid_in_chunk_resolves_in_full_input(self, make_finding, context):
        raw = [make_finding(f"rules.r{i}", path=f"f{i}.py") for i in range(70)]
        response = json.dumps([{"originalIndex": 49, "rank": 1}])
        result = await PrioritizationEngine(
            ranker=ranker_returning(response)
        ).prioritize(raw, context)
        assert result.strategy is Strategy.AI
        assert result.findings[0].path == "f49.py"

    @pytest.mark.asyncio
    async def test_provider_misconfiguration_falls_back(self, findings, context):
        engine = PrioritizationEngine(api_key="k", provider="nonexistent")
        result = await engine.prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        assert isinstance(result.error, CollaboratorUnavailable)
        assert "Unknown LLM provider" in str(result.error)

    @pytest.mark.asyncio
    async def test_result_bounded_to_ten(self, make_finding, context):
        raw = [make_finding(f"rules.r{i}", "ERROR", path=f"f{i}.py") for i in range(25)]
        result = await PrioritizationEngine().prioritize(raw, context)
        assert len(result.findings) == 10
        assert [r.rank for r in result.findings] == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_empty_input_rejected(self, context):
        with pytest.raises(ValueError, match="No findings"):
            await PrioritizationEngine().prioritize([], context)

    @pytest.mark.asyncio
    async def test_context_optional(self, findings):
        result = await PrioritizationEngine().prioritize(findings)
        assert len(result.findings) == 3

    @pytest.mark.asyncio
    async def test_injected_ranker_not_closed(self, findings, context):
        ranker = ranker_returning(AI_RESPONSE)
        await PrioritizationEngine(ranker=ranker).prioritize(findings, context)
        ranker.provider.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_ranker_closed_after_failure(self, findings, context, monkeypatch):
        ranker = ranker_raising(CollaboratorUnavailable("down"))
        monkeypatch.setattr(PrioritizationEngine, "_build_ranker", lambda self: ranker)
        result = await PrioritizationEngine(api_key="gsk-test").prioritize(findings, context)
        assert result.strategy is Strategy.FALLBACK
        ranker.provider.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, findings, context):
        before = [f.to_dict() for f in findings]
        await PrioritizationEngine(ranker=ranker_returning(AI_RESPONSE)).prioritize(findings, context)
        assert [f.to_dict() for f in findings] == before


