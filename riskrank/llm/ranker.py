"""AI ranking of findings through an LLM.

Builds a bounded prompt, makes exactly one completion call and validates
the JSON array that comes back. Merging the narrative with the raw
findings is left to ``riskrank.prioritize.merger``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from riskrank.exceptions import InvalidIndexReference, MalformedResponse
from riskrank.llm.provider import LLMProvider
from riskrank.models import NormalizedFinding, ProjectContext, RankingEntry
from riskrank.prioritize.constants import MAX_AI_FINDINGS, TOP_N

logger = logging.getLogger("riskrank.llm.ranker")

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)

SYSTEM_PROMPT = f"""You are an expert Application Security Engineer. Your job is to review raw static analysis (SAST) findings and prioritize them based on actual business risk.
You will be provided with project context (frameworks, dependencies) and a list of raw findings.

Your task:
1. Filter out noisy, low-impact findings.
2. Force-rank the TOP {TOP_N} most critical, business-breaking risks.
3. For each of them, explain the risk for a security report.

OUTPUT FORMAT REQUIRED:
Respond ONLY with a valid JSON array of at most {TOP_N} objects. Each object must have these keys:
- "originalIndex" (number): The "index" of the finding in the provided input array.
- "rank" (number): The rank from 1 to {TOP_N}, each rank used once.
- "title" (string): A short, punchy 3-5 word capitalized title (e.g. "HARDCODED HMAC KEY").
- "explanation" (string): 1-2 sentences on why this code is vulnerable.
- "businessImpact" (string): 1-2 sentences on the real-world business risk if exploited.
- "remediation" (string): 1-2 sentences on how to fix the code.
- "confidence" (string): "High", "Medium" or "Low" (true positive likelihood).
- "severity" (string): "Critical", "High", "Medium" or "Low".

Do not wrap the response in markdown. Return the raw JSON array only."""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) wrapper."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def build_user_prompt(
    findings: list[NormalizedFinding], context: ProjectContext
) -> str:
    """Project summary (dependency names only) plus the findings as JSON."""
    frameworks = ", ".join(context.frameworks) or "Unknown"
    deps = ", ".join(context.dependencies.keys()) or "None"
    records = [f.to_prompt_record() for f in findings]
    return (
        "Project Context:\n"
        f"Name: {context.name or 'Unknown'}\n"
        f"Frameworks: {frameworks}\n"
        f"Dependencies (keys only): {deps}\n\n"
        "Raw Findings:\n"
        f"{json.dumps(records, indent=2)}"
    )


def parse_rankings(text: str, submitted: int) -> list[RankingEntry]:
    """Parse and validate the LLM's ranking array.

    Raises:
        MalformedResponse: Not JSON, not an array, empty, schema
            violation, or duplicate ranks or indices.
        InvalidIndexReference: An ``originalIndex`` outside the submitted
            findings.
    """
    payload = strip_code_fence(text)
    try:
        data: Any = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedResponse(
            f"Failed to parse AI response as JSON: {e}. Raw response: {text[:500]}"
        ) from e

    if not isinstance(data, list):
        raise MalformedResponse(
            f"AI response is a {type(data).__name__}, expected a JSON array"
        )

    entries: list[RankingEntry] = []
    for pos, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedResponse(f"Ranking #{pos} is not an object")
        try:
            entries.append(RankingEntry.model_validate(item))
        except ValidationError as e:
            raise MalformedResponse(f"Ranking #{pos} is invalid: {e}") from e

    if not entries and submitted:
        raise MalformedResponse(
            f"AI response ranked none of the {submitted} submitted findings"
        )

    ranks = [e.rank for e in entries]
    if len(set(ranks)) != len(ranks):
        raise MalformedResponse(f"Duplicate ranks in AI response: {sorted(ranks)}")

    indices = [e.original_index for e in entries]
    if len(set(indices)) != len(indices):
        raise MalformedResponse(
            f"Duplicate originalIndex in AI response: {sorted(indices)}"
        )

    for entry in entries:
        if entry.original_index >= submitted:
            raise InvalidIndexReference(entry.original_index, submitted)
    return entries


class AIRanker:
    """Ranks findings with one LLM round trip. No retries."""

    def __init__(self, provider: LLMProvider, max_findings: int = MAX_AI_FINDINGS):
        self.provider = provider
        self.max_findings = max_findings

    async def rank(
        self, findings: list[NormalizedFinding], context: ProjectContext
    ) -> list[RankingEntry]:
        # First N in input order; the rest are not considered at all
        chunk = findings[: self.max_findings]
        if len(findings) > len(chunk):
            logger.info(
                "Submitting first %d of %d findings to %s",
                len(chunk), len(findings), self.provider.provider_name,
            )

        text = await self.provider.complete(
            prompt=build_user_prompt(chunk, context),
            system=SYSTEM_PROMPT,
            temperature=0.1,
            max_tokens=4000,
        )
        entries = parse_rankings(text, submitted=len(chunk))
        logger.debug("AI returned %d rankings", len(entries))
        return entries

    async def close(self) -> None:
        await self.provider.close()
