"""
RiskRank — Configuration.
Settings read from the environment. Only the CLI consults this module;
the prioritization engine receives every value explicitly.
"""

import os
from pathlib import Path

# Base Paths
RISKRANK_DIR = Path.home() / ".riskrank"
DEFAULT_DB_PATH = RISKRANK_DIR / "riskrank.db"

DEFAULT_PROVIDER = "groq"


def reload() -> None:
    """Re-read every setting from the environment."""
    global DB_PATH, LLM_PROVIDER, LLM_MODEL, LLM_BASE_URL, LLM_API_KEY
    global LLM_TIMEOUT, SCAN_TIMEOUT

    # Database
    DB_PATH = os.environ.get("RISKRANK_DB", str(DEFAULT_DB_PATH))

    # ─── LLM Provider ────────────────────────────────────────────────
    # RISKRANK_LLM_PROVIDER: "groq" (default) | "openai" | "openrouter" |
    #   "together" | "deepseek" | "mistral" | "fireworks" | "cerebras" |
    #   "ollama" | "lmstudio" | "custom"
    LLM_PROVIDER = os.environ.get("RISKRANK_LLM_PROVIDER", DEFAULT_PROVIDER)
    LLM_MODEL = os.environ.get("RISKRANK_LLM_MODEL", "")  # Empty → preset default
    LLM_BASE_URL = os.environ.get("RISKRANK_LLM_BASE_URL", "")  # For 'custom' provider
    LLM_API_KEY = os.environ.get("RISKRANK_LLM_API_KEY", "")
    LLM_TIMEOUT = float(os.environ.get("RISKRANK_LLM_TIMEOUT", "60"))

    # Scanner
    SCAN_TIMEOUT = int(os.environ.get("RISKRANK_SCAN_TIMEOUT", "600"))


reload()


def resolve_api_key(provider: str, explicit: str | None = None) -> str:
    """Pick the credential for a provider.

    Order: explicit value (``--key``), ``RISKRANK_LLM_API_KEY``, then the
    provider preset's own variable (e.g. ``GROQ_API_KEY``).
    """
    if explicit:
        return explicit
    if LLM_API_KEY:
        return LLM_API_KEY

    from riskrank.llm.provider import PROVIDER_PRESETS

    preset = PROVIDER_PRESETS.get(provider)
    if preset and preset["env_key"]:
        return os.environ.get(preset["env_key"], "")
    return ""
