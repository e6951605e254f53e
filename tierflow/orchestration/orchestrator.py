"""
Multi-model orchestrator.

Single entry point callers use to get a completion. For each request it:

1. Looks the prompt up in the response cache (unless skip_cache is set)
2. Asks the router for a tier (LOCAL or CLOUD)
3. Formats the prompt for that tier and invokes it
4. Caches the successful response (unless cache_response is False)

A failed LOCAL call is retried once on CLOUD unless allow_fallback is False.
There is no other retry: CLOUD failures, and LOCAL failures without
fallback, propagate immediately wrapped with the failing tier's identity.

Concurrent calls are not serialized. Two identical requests racing past an
empty cache both reach the tier and both write their own entry, unless the
orchestrator is built with coalesce_requests=True. Then late arrivals that
agree on allow_fallback and cache_response await one shared in-flight task.
Cancelling one caller does not cancel that task for the others.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any, Callable

from tierflow.logging.logger import log_fields
from tierflow.orchestration.base import ModelTier
from tierflow.orchestration.cache import (
    CacheConfig,
    CacheStats,
    ResponseCache,
    make_cache_key,
)
from tierflow.orchestration.errors import (
    CompoundFailureError,
    ConfigurationError,
    TierError,
    TierErrorKind,
)
from tierflow.orchestration.models import (
    LLMResponse,
    ModelRequestOptions,
    RequestOptions,
    RouterOptions,
    TierId,
)
from tierflow.orchestration.prompt import PromptFormatter
from tierflow.orchestration.router import ModelRouter
from tierflow.observability.metrics import fallbacks, llm_tokens, tier_latency, tier_requests

logger = logging.getLogger(__name__)

# cache key, fallback allowed, cache write allowed
InflightKey = tuple[str, bool, bool]


class MultiModelOrchestrator:
    """Routes prompts between the local and cloud tiers behind a response cache."""

    def __init__(
        self,
        cloud_tier: ModelTier,
        local_tier: ModelTier,
        router: ModelRouter,
        prompt_formatter: PromptFormatter,
        cache_config: CacheConfig | None = None,
        *,
        tier_timeout_s: float | None = None,
        coalesce_requests: bool = False,
        cache_clock: Callable[[], float] | None = None,
    ) -> None:
        self._tiers: dict[TierId, ModelTier] = {
            TierId.CLOUD: cloud_tier,
            TierId.LOCAL: local_tier,
        }
        self._router = router
        self._prompt_formatter = prompt_formatter
        self._cache = ResponseCache(cache_config, clock=cache_clock or time.monotonic)
        if tier_timeout_s is not None and tier_timeout_s <= 0:
            raise ConfigurationError(f"tier_timeout_s must be > 0, got {tier_timeout_s}")
        self._tier_timeout_s = tier_timeout_s
        self._coalesce_requests = coalesce_requests
        self._inflight: dict[InflightKey, asyncio.Task[LLMResponse]] = {}

    async def make_api_request(
        self,
        prompt: str,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> LLMResponse:
        opts = _coerce_options(options)
        cache_key = make_cache_key(prompt, opts)

        if opts.skip_cache is not True:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Response cache HIT for key %s", cache_key[:24])
                return cached.model_copy(
                    update={"latency_ms": 0.0, "cached": True}, deep=True
                )
            logger.debug("Response cache MISS for key %s", cache_key[:24])

            if self._coalesce_requests:
                return await self._coalesced(cache_key, prompt, opts)

        return await self._execute(cache_key, prompt, opts)

    def clear_cache(self) -> None:
        """Drop every cached response, e.g. after the underlying sources changed."""
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def _coalesced(
        self, cache_key: str, prompt: str, opts: RequestOptions
    ) -> LLMResponse:
        # Callers only share work when they agree on fallback and cache writes.
        flight_key = (cache_key, opts.allow_fallback is not False, opts.cache_response is not False)
        task = self._inflight.get(flight_key)
        if task is None:
            task = asyncio.create_task(self._execute(cache_key, prompt, opts))
            self._inflight[flight_key] = task
            task.add_done_callback(lambda done: self._release_flight(flight_key, done))
        else:
            logger.debug("Joining in-flight request for key %s", cache_key[:24])

        # A cancelled caller leaves the shared task running for the others.
        response = await asyncio.shield(task)
        return response.model_copy(deep=True)

    def _release_flight(self, flight_key: InflightKey, task: asyncio.Task[LLMResponse]) -> None:
        if self._inflight.get(flight_key) is task:
            del self._inflight[flight_key]
        if not task.cancelled():
            # retrieved here so a flight nobody awaits anymore does not warn
            task.exception()

    async def _execute(
        self, cache_key: str, prompt: str, opts: RequestOptions
    ) -> LLMResponse:
        tier = self._router.route_request(
            opts.task_type, prompt, RouterOptions(task_type=opts.task_type)
        )
        model_options = opts.to_model_options()

        try:
            response = await self._invoke(tier, prompt, model_options)
        except TierError as primary_error:
            if tier is TierId.LOCAL and opts.allow_fallback is not False:
                response = await self._fallback_to_cloud(prompt, model_options, primary_error)
            else:
                raise primary_error.wrap(
                    f"Model request failed for tier {tier.value}: {primary_error.message}"
                ) from primary_error

        if opts.cache_response is not False:
            self._cache.set(cache_key, response.model_copy(deep=True))
        return response

    async def _fallback_to_cloud(
        self,
        prompt: str,
        model_options: ModelRequestOptions,
        primary_error: TierError,
    ) -> LLMResponse:
        logger.warning(
            "LOCAL tier failed, falling back to CLOUD: %s",
            primary_error.message,
            extra=log_fields(tier=TierId.LOCAL.value, error_kind=primary_error.kind.value),
        )
        try:
            response = await self._invoke(TierId.CLOUD, prompt, model_options)
        except TierError as fallback_error:
            fallbacks.labels(outcome="failure").inc()
            logger.error(
                "CLOUD fallback failed after LOCAL failure: %s", fallback_error.message
            )
            raise CompoundFailureError(primary_error, fallback_error) from fallback_error

        fallbacks.labels(outcome="success").inc()
        return response

    async def _invoke(
        self, tier: TierId, prompt: str, model_options: ModelRequestOptions
    ) -> LLMResponse:
        formatted = self._prompt_formatter.format_prompt(prompt, tier)
        try:
            call = self._tiers[tier].make_request(formatted, model_options)
            with tier_latency.labels(tier=tier.value).time():
                if self._tier_timeout_s is not None:
                    model_response = await asyncio.wait_for(call, timeout=self._tier_timeout_s)
                else:
                    model_response = await call
        except asyncio.TimeoutError as exc:
            tier_requests.labels(tier=tier.value, outcome="timeout").inc()
            raise TierError(
                f"{tier.value} tier timed out after {self._tier_timeout_s}s",
                tier,
                TierErrorKind.TIMEOUT,
            ) from exc
        except (TierError, ConfigurationError):
            tier_requests.labels(tier=tier.value, outcome="failure").inc()
            raise
        except Exception as exc:
            tier_requests.labels(tier=tier.value, outcome="failure").inc()
            raise TierError(str(exc), tier) from exc

        tier_requests.labels(tier=tier.value, outcome="success").inc()
        usage = model_response.token_usage
        llm_tokens.labels(tier=tier.value, direction="prompt").inc(usage.input_tokens)
        llm_tokens.labels(tier=tier.value, direction="completion").inc(usage.output_tokens)
        return LLMResponse.from_model_response(model_response)


def _coerce_options(options: RequestOptions | Mapping[str, Any] | None) -> RequestOptions:
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    return RequestOptions.model_validate(dict(options))
