"""RiskRank — OpenAI-compatible LLM Provider.

Async client for any endpoint that speaks the OpenAI chat completions
protocol. Ships with presets for common hosted and local providers; any
other endpoint works through ``provider="custom"`` plus ``base_url``.

The API key is always passed in by the caller. Credential lookup from
the environment happens in ``riskrank.config``, never here.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from riskrank.exceptions import CollaboratorUnavailable, MalformedResponse

logger = logging.getLogger("riskrank.llm")

DEFAULT_TIMEOUT = 60.0


# ─── Provider Presets ─────────────────────────────────────────────────
# Every preset follows OpenAI chat/completions protocol.
# Format: base_url, default_model, env_key, context_window

PROVIDER_PRESETS: dict[str, dict[str, Any]] = {
    # ── Hosted ─────────────────────────────────────────────────────
    "groq": {
        "base_url": "https://api.groq.com/openai/v1",
        "default_model": "llama-3.3-70b-versatile",
        "env_key": "GROQ_API_KEY",
        "context_window": 131072,
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "default_model": "gpt-4o-mini",
        "env_key": "OPENAI_API_KEY",
        "context_window": 128000,
    },
    "openrouter": {
        "base_url": "https://openrouter.ai/api/v1",
        "default_model": "meta-llama/llama-3.3-70b-instruct",
        "env_key": "OPENROUTER_API_KEY",
        "context_window": 131072,
    },
    "together": {
        "base_url": "https://api.together.xyz/v1",
        "default_model": "meta-llama/Llama-3.3-70B-Instruct-Turbo",
        "env_key": "TOGETHER_API_KEY",
        "context_window": 131072,
    },
    "deepseek": {
        "base_url": "https://api.deepseek.com/v1",
        "default_model": "deepseek-chat",
        "env_key": "DEEPSEEK_API_KEY",
        "context_window": 128000,
    },
    "mistral": {
        "base_url": "https://api.mistral.ai/v1",
        "default_model": "mistral-large-latest",
        "env_key": "MISTRAL_API_KEY",
        "context_window": 128000,
    },
    "fireworks": {
        "base_url": "https://api.fireworks.ai/inference/v1",
        "default_model": "accounts/fireworks/models/llama-v3p3-70b-instruct",
        "env_key": "FIREWORKS_API_KEY",
        "context_window": 131072,
    },
    "cerebras": {
        "base_url": "https://api.cerebras.ai/v1",
        "default_model": "llama-3.3-70b",
        "env_key": "CEREBRAS_API_KEY",
        "context_window": 131072,
    },
    # ── Local / Self-Hosted ────────────────────────────────────────
    "ollama": {
        "base_url": "http://localhost:11434/v1",
        "default_model": "qwen2.5",
        "env_key": "",
        "context_window": 32768,
    },
    "lmstudio": {
        "base_url": "http://localhost:1234/v1",
        "default_model": "local-model",
        "env_key": "",
        "context_window": 32768,
    },
}


def requires_api_key(provider: str) -> bool:
    """True for hosted presets; local presets and 'custom' may run keyless."""
    preset = PROVIDER_PRESETS.get(provider)
    return bool(preset and preset["env_key"])


class LLMProvider:
    """OpenAI-compatible async LLM client.

    Usage::

        provider = LLMProvider(provider="groq", api_key="gsk_...")
        try:
            text = await provider.complete("Rank these findings", system="...")
        finally:
            await provider.close()
    """

    def __init__(
        self,
        provider: str = "groq",
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if provider == "custom":
            if not base_url:
                raise ValueError("Custom provider requires a base_url.")
            self._base_url = base_url
            self._model = model or "custom-model"
            self._context_window = 32768
        elif provider in PROVIDER_PRESETS:
            config = PROVIDER_PRESETS[provider]
            self._base_url = base_url or config["base_url"]
            self._model = model or config["default_model"]
            self._context_window = config["context_window"]
            if config["env_key"] and not api_key:
                raise ValueError(
                    f"An API key is required for '{provider}' "
                    f"(pass --key or set {config['env_key']})."
                )
        else:
            raise ValueError(
                f"Unknown LLM provider '{provider}'. "
                f"Supported: {self.list_providers()}"
            )

        self._provider = provider
        self._api_key = api_key or ""
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info(
            "LLM ready: %s (model=%s, url=%s)",
            self._provider, self._model, self._base_url,
        )

    async def complete(
        self,
        prompt: str,
        system: str = "You are a helpful assistant.",
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> str:
        """Send one chat completion request and return the response text.

        Raises:
            CollaboratorUnavailable: On transport errors, timeouts and any
                non-2xx status (auth, quota, server errors).
            MalformedResponse: When the body lacks a message content.
        """
        url = f"{self._base_url.rstrip('/')}/chat/completions"
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self._client.post(url, headers=headers, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise CollaboratorUnavailable(
                f"{self._provider} request timed out: {e}"
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "LLM API error (%s %s): %s",
                e.response.status_code, self._provider,
                e.response.text[:500],
            )
            raise CollaboratorUnavailable(
                f"{self._provider} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise CollaboratorUnavailable(f"{self._provider} unreachable: {e}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected LLM response format: %s", e)
            raise MalformedResponse(
                f"Unexpected response from {self._provider}"
            ) from e
        if not isinstance(content, str):
            raise MalformedResponse(f"Empty message content from {self._provider}")
        return content

    @property
    def model(self) -> str:
        """Active model name."""
        return self._model

    @property
    def provider_name(self) -> str:
        """Provider identifier."""
        return self._provider

    @property
    def context_window(self) -> int:
        return self._context_window

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"LLMProvider(provider={self._provider!r}, model={self._model!r})"

    @classmethod
    def list_providers(cls) -> list[str]:
        """Return all preset provider names + 'custom'."""
        return sorted(list(PROVIDER_PRESETS.keys()) + ["custom"])

    @classmethod
    def get_preset_info(cls, provider: str) -> dict[str, Any] | None:
        """Return preset config for a provider, or None if not found."""
        return PROVIDER_PRESETS.get(provider)
