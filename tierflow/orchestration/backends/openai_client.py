"""
Completion client for any OpenAI Chat Completions compatible endpoint.

One profile per provider name; LLM_BASE_URL and LLM_MODEL override the
profile, LLM_API_KEY (or OPENAI_API_KEY) supplies the key. The SDK's own
timeout and retries are switched off because deadlines and fallback belong
to the orchestrator.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from tierflow.orchestration.backends.base import CompletionClient
from tierflow.orchestration.errors import ConfigurationError


@dataclass(frozen=True)
class ProviderProfile:
    base_url: str
    default_model: str
    requires_key: bool = True


PROVIDERS: dict[str, ProviderProfile] = {
    "openai": ProviderProfile("https://api.openai.com/v1", "gpt-4o-mini"),
    "groq": ProviderProfile("https://api.groq.com/openai/v1", "llama-3.3-70b-versatile"),
    "gemini": ProviderProfile(
        "https://generativelanguage.googleapis.com/v1beta/openai/", "gemini-2.0-flash"
    ),
    "openrouter": ProviderProfile(
        "https://openrouter.ai/api/v1", "meta-llama/llama-3.3-70b-instruct:free"
    ),
    # Ollama / LM Studio ignore the key but the SDK insists on one
    "local": ProviderProfile("http://localhost:11434/v1", "llama3.2", requires_key=False),
}

_KEYLESS_PLACEHOLDER = "not-needed"


class OpenAICompletionClient(CompletionClient):

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        provider_name: str = "openai",
        system_prompt: str | None = None,
    ) -> None:
        profile = PROVIDERS.get(provider_name)
        if profile is None:
            raise ConfigurationError(
                f"No OpenAI-compatible profile for provider '{provider_name}'. "
                f"Known: {', '.join(PROVIDERS)}"
            )

        key = api_key or os.environ.get("LLM_API_KEY") or os.environ.get("OPENAI_API_KEY")
        if not key:
            if profile.requires_key:
                raise ConfigurationError(
                    f"Provider '{provider_name}' needs an API key: set LLM_API_KEY "
                    "(or OPENAI_API_KEY)."
                )
            key = _KEYLESS_PLACEHOLDER

        self._provider_name = provider_name
        self._model = model or os.environ.get("LLM_MODEL") or profile.default_model
        self._system_prompt = system_prompt

        try:
            from openai import AsyncOpenAI
        except ImportError as exc:
            raise ImportError(
                "The cloud tier needs the openai package: pip install openai"
            ) from exc

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=base_url or os.environ.get("LLM_BASE_URL") or profile.base_url,
            timeout=None,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def _messages(self, prompt: str) -> list[dict[str, str]]:
        messages = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        stop: list[str] | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self._model,
            "messages": self._messages(prompt),
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if temperature is not None:
            params["temperature"] = temperature
        if stop:
            params["stop"] = stop

        completion = await self._client.chat.completions.create(**params)

        usage = completion.usage
        details = getattr(usage, "prompt_tokens_details", None)
        return {
            "content": completion.choices[0].message.content or "",
            "usage": {
                "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
                "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
                "cache_read_tokens": getattr(details, "cached_tokens", None),
            },
        }
