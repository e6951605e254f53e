"""Shared fixtures and fakes for the orchestration tests."""

from __future__ import annotations

import asyncio

import pytest

from tierflow.orchestration.base import ModelTier
from tierflow.orchestration.models import (
    ModelRequestOptions,
    ModelResponse,
    TierId,
    TokenUsage,
)
from tierflow.orchestration.orchestrator import MultiModelOrchestrator
from tierflow.orchestration.preferences import static_preference
from tierflow.orchestration.prompt import PromptFormatter
from tierflow.orchestration.router import ModelRouter


class FakeTier(ModelTier):
    """Records every call and answers with a canned response or error."""

    def __init__(
        self,
        tier_id: TierId,
        text: str | None = None,
        error: Exception | None = None,
        latency_ms: float = 42.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.tier_id = tier_id
        self.text = text or f"{tier_id.value.lower()} response"
        self.error = error
        self.latency_ms = latency_ms
        self.gate = gate
        self.calls: list[tuple[str, ModelRequestOptions]] = []

    async def make_request(
        self, prompt: str, options: ModelRequestOptions
    ) -> ModelResponse:
        self.calls.append((prompt, options))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return ModelResponse(
            text=self.text,
            token_usage=TokenUsage(input_tokens=10, output_tokens=20),
            tier_id=self.tier_id,
            latency_ms=self.latency_ms,
        )


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def local_tier():
    return FakeTier(TierId.LOCAL)


@pytest.fixture
def cloud_tier():
    return FakeTier(TierId.CLOUD)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_orchestrator(local_tier, cloud_tier, clock):
    """Build an orchestrator over the fake tiers with an 'auto' preference."""

    def _make(preference: str = "auto", **kwargs) -> MultiModelOrchestrator:
        return MultiModelOrchestrator(
            cloud_tier=kwargs.pop("cloud", cloud_tier),
            local_tier=kwargs.pop("local", local_tier),
            router=ModelRouter(static_preference(preference)),
            prompt_formatter=PromptFormatter(),
            cache_clock=clock,
            **kwargs,
        )

    return _make
