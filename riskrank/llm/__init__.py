"""RiskRank — LLM Module.

OpenAI-compatible LLM client and the AI ranker built on it.
"""

from riskrank.llm.provider import LLMProvider
from riskrank.llm.ranker import AIRanker

__all__ = ["LLMProvider", "AIRanker"]
