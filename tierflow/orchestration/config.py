from __future__ import annotations

import os
from dataclasses import dataclass

from tierflow.orchestration.cache import DEFAULT_MAX_ITEMS, DEFAULT_TTL_SECONDS, CacheConfig
from tierflow.orchestration.errors import ConfigurationError
from tierflow.orchestration.tiers.local import DEFAULT_MAX_CONTEXT_TOKENS

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class OrchestratorConfig:
    component_name: str = "tierflow"
    log_level: str = "INFO"
    llm_provider: str = "mock"
    local_backend: str = "onnx"
    local_model_dir: str | None = None
    local_max_context_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS
    cache_max_items: int = DEFAULT_MAX_ITEMS
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    tier_timeout_s: float | None = None
    coalesce_requests: bool = False

    def __post_init__(self) -> None:
        if self.tier_timeout_s is not None and self.tier_timeout_s <= 0:
            raise ConfigurationError(
                f"TIER_TIMEOUT_S must be > 0, got {self.tier_timeout_s}"
            )

    @property
    def cache(self) -> CacheConfig:
        return CacheConfig(
            max_items=self.cache_max_items,
            ttl_seconds=self.cache_ttl_seconds,
        )

    @classmethod
    def from_env(cls) -> OrchestratorConfig:
        timeout = os.environ.get("TIER_TIMEOUT_S", "")
        return cls(
            component_name=os.environ.get("COMPONENT_NAME", "tierflow"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            llm_provider=os.environ.get("LLM_PROVIDER", "mock"),
            local_backend=os.environ.get("LOCAL_BACKEND", "onnx"),
            local_model_dir=os.environ.get("LOCAL_MODEL_DIR") or None,
            local_max_context_tokens=_env_number(
                "LOCAL_MAX_CONTEXT_TOKENS", DEFAULT_MAX_CONTEXT_TOKENS, int
            ),
            cache_max_items=_env_number("CACHE_MAX_ITEMS", DEFAULT_MAX_ITEMS, int),
            cache_ttl_seconds=_env_number("CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS, float),
            tier_timeout_s=_env_number("TIER_TIMEOUT_S", 0.0, float) if timeout else None,
            coalesce_requests=os.environ.get("COALESCE_REQUESTS", "false").lower() in _TRUTHY,
        )


def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
