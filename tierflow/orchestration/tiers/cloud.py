"""Cloud model tier wrapping an externally supplied completion client."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from tierflow.logging.logger import log_fields
from tierflow.orchestration.backends.base import CompletionClient
from tierflow.orchestration.base import ModelTier
from tierflow.orchestration.errors import TierError, TierErrorKind
from tierflow.orchestration.models import (
    ModelRequestOptions,
    ModelResponse,
    TierId,
    TokenUsage,
)

logger = logging.getLogger(__name__)


class CloudModelTier(ModelTier):
    tier_id = TierId.CLOUD

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    async def make_request(
        self, prompt: str, options: ModelRequestOptions
    ) -> ModelResponse:
        start = time.perf_counter()
        try:
            logger.debug("Making cloud completion request")
            raw = await self._client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                stop=options.stop_sequences,
            )
        except Exception as exc:
            logger.error("Cloud model request failed: %s", exc)
            raise TierError(
                f"Cloud model request failed: {exc}",
                TierId.CLOUD,
                status_code=_status_code(exc),
            ) from exc

        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Cloud inference complete",
            extra=log_fields(tier=TierId.CLOUD.value, latency_ms=round(latency_ms, 1)),
        )
        return _to_model_response(raw, latency_ms)


def _to_model_response(raw: Any, latency_ms: float) -> ModelResponse:
    if isinstance(raw, str):
        return ModelResponse(text=raw, tier_id=TierId.CLOUD, latency_ms=latency_ms)

    content = _field(raw, "content")
    if content is None:
        content = ""
    if not isinstance(content, str):
        raise TierError(
            f"Cloud model returned non-text content: {type(content).__name__}",
            TierId.CLOUD,
            TierErrorKind.INVALID_RESPONSE,
        )

    usage = _field(raw, "usage") or {}
    return ModelResponse(
        text=content,
        token_usage=TokenUsage(
            input_tokens=_usage_value(usage, "prompt_tokens", "input_tokens") or 0,
            output_tokens=_usage_value(usage, "completion_tokens", "output_tokens") or 0,
            cache_read_tokens=_usage_value(usage, "cache_read_tokens"),
            cache_write_tokens=_usage_value(usage, "cache_write_tokens"),
        ),
        tier_id=TierId.CLOUD,
        latency_ms=latency_ms,
    )


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _usage_value(usage: Any, *names: str) -> int | None:
    for name in names:
        value = _field(usage, name)
        if isinstance(value, int):
            return value
    return None


def _status_code(exc: BaseException) -> int | None:
    """HTTP status from SDK errors (status_code) or raw HTTP errors (response.status_code)."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None
