"""Prioritization orchestrator.

Picks one of two strategies (AI or fallback), runs it, and guarantees a
ranked result. Any classified AI failure becomes an explicit transition
to the fallback strategy; it never reaches the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from riskrank.exceptions import CollaboratorUnavailable, RiskRankError
from riskrank.llm.provider import (
    DEFAULT_TIMEOUT,
    PROVIDER_PRESETS,
    LLMProvider,
    requires_api_key,
)
from riskrank.llm.ranker import AIRanker
from riskrank.models import (
    Finding,
    NormalizedFinding,
    ProjectContext,
    RankedFinding,
    Strategy,
)
from riskrank.prioritize.constants import TOP_N
from riskrank.prioritize.fallback import fallback_prioritization
from riskrank.prioritize.merger import merge_rankings
from riskrank.prioritize.normalizer import normalize_findings

logger = logging.getLogger("riskrank.prioritize")


@dataclass
class PrioritizationResult:
    """Ranked findings plus which strategy produced them."""

    findings: list[RankedFinding]
    strategy: Strategy
    error: RiskRankError | None = None
    total_raw: int = 0

    @property
    def fell_back(self) -> bool:
        """True when the AI path was attempted and failed."""
        return self.error is not None


class PrioritizationEngine:
    """Turns raw findings into a validated Top 10.

    The credential is passed in explicitly; the engine reads no
    environment and keeps no state between ``prioritize`` calls.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        provider: str = "groq",
        base_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        ranker: AIRanker | None = None,
    ):
        self._api_key = api_key or None
        self._model = model
        self._provider_name = provider
        self._base_url = base_url
        self._timeout = timeout
        self._ranker = ranker

    # ── Strategy selection ───────────────────────────────────────────

    def select_strategy(self) -> Strategy:
        """AI when a ranker can be built, otherwise the fallback."""
        if self._ranker is not None:
            return Strategy.AI
        if self._api_key:
            return Strategy.AI
        if self._provider_name == "custom":
            return Strategy.AI if self._base_url else Strategy.FALLBACK
        # Local presets (ollama, lmstudio) run keyless
        if self._provider_name in PROVIDER_PRESETS and not requires_api_key(
            self._provider_name
        ):
            return Strategy.AI
        return Strategy.FALLBACK

    def _build_ranker(self) -> AIRanker:
        provider = LLMProvider(
            provider=self._provider_name,
            api_key=self._api_key,
            model=self._model,
            base_url=self._base_url,
            timeout=self._timeout,
        )
        return AIRanker(provider)

    # ── Strategies ───────────────────────────────────────────────────

    async def _run_ai(
        self, normalized: list[NormalizedFinding], context: ProjectContext
    ) -> list[RankedFinding]:
        owned = self._ranker is None
        ranker = self._ranker or self._build_ranker()
        try:
            entries = await ranker.rank(normalized, context)
            # Resolve against the full input, not the submitted chunk
            return merge_rankings(entries, normalized, TOP_N)
        finally:
            if owned:
                await ranker.close()

    def _run_fallback(
        self, normalized: list[NormalizedFinding]
    ) -> list[RankedFinding]:
        return fallback_prioritization(normalized, TOP_N)

    # ── Entry point ──────────────────────────────────────────────────

    async def prioritize(
        self,
        findings: Iterable[Finding | Mapping[str, Any]],
        context: ProjectContext | None = None,
    ) -> PrioritizationResult:
        """Rank ``findings`` and report which strategy was used.

        Raises:
            ValueError: On empty input (callers short-circuit first) or a
                finding with neither id nor path.
        """
        normalized = normalize_findings(findings)
        if not normalized:
            raise ValueError("No findings to prioritize")
        context = context or ProjectContext()

        strategy = self.select_strategy()
        logger.info(
            "Prioritizing %d findings with strategy=%s", len(normalized), strategy.value
        )

        if strategy is Strategy.AI:
            try:
                ranked = await self._run_ai(normalized, context)
                return PrioritizationResult(
                    findings=ranked, strategy=Strategy.AI, total_raw=len(normalized)
                )
            except RiskRankError as e:
                logger.warning("AI ranking failed (%s): %s", e.kind, e)
                return self._fallback(normalized, error=e)
            except ValueError as e:
                # Provider misconfiguration (unknown preset, missing key)
                logger.warning("AI ranking unavailable: %s", e)
                return self._fallback(normalized, error=_as_unavailable(e))

        return self._fallback(normalized)

    def _fallback(
        self,
        normalized: list[NormalizedFinding],
        error: RiskRankError | None = None,
    ) -> PrioritizationResult:
        ranked = self._run_fallback(normalized)
        return PrioritizationResult(
            findings=ranked,
            strategy=Strategy.FALLBACK,
            error=error,
            total_raw=len(normalized),
        )


def _as_unavailable(exc: Exception) -> RiskRankError:
    err = CollaboratorUnavailable(str(exc))
    err.__cause__ = exc
    return err
