"""Data models for the orchestration layer."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TierId(str, Enum):
    LOCAL = "LOCAL"
    CLOUD = "CLOUD"


class TaskType(str, Enum):
    """Well-known task types. Callers may still pass any string."""

    CODE_GENERATION = "codeGeneration"
    COMPLEX_REASONING = "complexReasoning"
    EXPLANATION = "explanation"
    SUMMARIZATION = "summarization"
    COMPLETION = "completion"


def _enum_to_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class RequestOptions(BaseModel):
    """
    Caller-facing options for a single orchestrated request.

    skip_cache, cache_response and allow_fallback only steer the
    orchestrator; they never reach a tier and never affect the cache key.
    """

    model_config = ConfigDict(extra="forbid")

    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    stop_sequences: list[str] | None = None
    task_type: str | None = None
    cache_strategy: str | None = None
    skip_cache: bool | None = None
    cache_response: bool | None = None
    allow_fallback: bool | None = None

    @field_validator("task_type", mode="before")
    @classmethod
    def normalize_task_type(cls, value: Any) -> Any:
        return _enum_to_value(value)

    def to_model_options(self) -> ModelRequestOptions:
        return ModelRequestOptions(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            stop_sequences=self.stop_sequences,
            cache_strategy=self.cache_strategy,
        )


class ModelRequestOptions(BaseModel):
    """Subset of RequestOptions handed to a tier."""

    max_tokens: int | None = None
    temperature: float | None = None
    stop_sequences: list[str] | None = None
    cache_strategy: str | None = None


class RouterOptions(BaseModel):
    task_type: str | None = None

    @field_validator("task_type", mode="before")
    @classmethod
    def normalize_task_type(cls, value: Any) -> Any:
        return _enum_to_value(value)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int | None = None
    cache_write_tokens: int | None = None


class ModelResponse(BaseModel):
    """Normalized result of one successful tier call."""

    text: str
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    tier_id: TierId
    latency_ms: float = Field(default=0.0, ge=0.0)


# Floor for tier-measured latency, so 0 always means a cache hit.
MIN_UNCACHED_LATENCY_MS = 0.001


class LLMResponse(BaseModel):
    """
    Caller-facing response.

    latency_ms is 0 exactly when the response was served from the cache,
    in which case cached is True as well.
    """

    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    tier_id: TierId
    latency_ms: float = Field(default=0.0, ge=0.0)
    cached: bool = False

    @classmethod
    def from_model_response(cls, response: ModelResponse) -> LLMResponse:
        return cls(
            content=response.text,
            usage=response.token_usage.model_copy(),
            tier_id=response.tier_id,
            latency_ms=max(response.latency_ms, MIN_UNCACHED_LATENCY_MS),
            cached=False,
        )
