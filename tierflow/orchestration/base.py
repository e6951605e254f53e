"""Abstract base class that every model tier must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

from tierflow.orchestration.models import ModelRequestOptions, ModelResponse, TierId


class ModelTier(ABC):
    """
    Contract for model tiers.

    Every implementation MUST:
    - Measure and report the wall-clock latency of the backend call
    - Raise TierError on any failure, never return a partial ModelResponse
    """

    tier_id: TierId

    @abstractmethod
    async def make_request(
        self, prompt: str, options: ModelRequestOptions
    ) -> ModelResponse:
        """Send a prompt to the backend and return the normalized response."""
