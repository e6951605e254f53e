"""
Local model tier.

Runs completions on-device through an injected LocalInferenceBackend.
The backend is loaded once by initialize(); until that succeeds every
request fails with a NOT_INITIALIZED TierError. A failed initialization is
terminal for the instance: build a new LocalModelTier to try again.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path

from tierflow.logging.logger import log_fields
from tierflow.orchestration.backends.base import LocalInferenceBackend
from tierflow.orchestration.base import ModelTier
from tierflow.orchestration.errors import ConfigurationError, TierError, TierErrorKind
from tierflow.orchestration.models import (
    ModelRequestOptions,
    ModelResponse,
    TierId,
    TokenUsage,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTEXT_TOKENS = 2048
DEFAULT_MAX_NEW_TOKENS = 256
DEFAULT_TEMPERATURE = 0.7


class TierState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class LocalModelTier(ModelTier):
    tier_id = TierId.LOCAL

    def __init__(
        self,
        backend: LocalInferenceBackend,
        max_context_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS,
    ) -> None:
        self._backend = backend
        self._max_context_tokens = max_context_tokens
        self._state = TierState.UNINITIALIZED

    @property
    def state(self) -> TierState:
        return self._state

    async def initialize(self, model_dir: str | Path) -> None:
        if self._state is not TierState.UNINITIALIZED:
            raise ConfigurationError(
                f"LocalModelTier cannot be initialized from state '{self._state.value}'; "
                "create a new instance"
            )

        model_dir = Path(model_dir)
        model_path = model_dir / self._backend.model_file
        tokenizer_path = model_dir / self._backend.tokenizer_file

        self._state = TierState.INITIALIZING
        try:
            if not model_path.exists():
                raise ConfigurationError(f"Local model file not found: {model_path}")
            if not tokenizer_path.exists():
                raise ConfigurationError(f"Local tokenizer file not found: {tokenizer_path}")

            try:
                await self._backend.load(model_dir)
            except Exception as exc:
                raise ConfigurationError(
                    f"Failed to load local model from {model_dir}: {exc}"
                ) from exc
        except ConfigurationError:
            self._state = TierState.FAILED
            logger.exception("LocalModelTier initialization failed")
            raise

        self._state = TierState.READY
        logger.info("LocalModelTier ready (model_dir=%s)", model_dir)

    async def make_request(
        self, prompt: str, options: ModelRequestOptions
    ) -> ModelResponse:
        if self._state is not TierState.READY:
            raise TierError(
                "LocalModelTier not initialized or initialization failed.",
                TierId.LOCAL,
                TierErrorKind.NOT_INITIALIZED,
            )

        start = time.perf_counter()
        try:
            input_ids = self._backend.tokenize(prompt)
        except Exception as exc:
            raise TierError(
                f"Local model inference failed: {exc}", TierId.LOCAL
            ) from exc

        if len(input_ids) > self._max_context_tokens:
            raise TierError(
                f"Input prompt ({len(input_ids)} tokens) exceeds maximum context "
                f"length of {self._max_context_tokens} tokens",
                TierId.LOCAL,
                TierErrorKind.CONTEXT_OVERFLOW,
            )

        max_new_tokens = options.max_tokens or DEFAULT_MAX_NEW_TOKENS
        temperature = (
            options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
        )

        try:
            output_ids = await self._backend.infer(input_ids, max_new_tokens, temperature)
            text = self._backend.detokenize(output_ids)
        except Exception as exc:
            logger.error("Local inference failed: %s", exc)
            raise TierError(
                f"Local model inference failed: {exc}", TierId.LOCAL
            ) from exc

        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Local inference complete",
            extra=log_fields(
                tier=TierId.LOCAL.value,
                latency_ms=round(latency_ms, 1),
                input_tokens=len(input_ids),
                output_tokens=len(output_ids),
            ),
        )

        return ModelResponse(
            text=text,
            token_usage=TokenUsage(
                input_tokens=len(input_ids),
                output_tokens=len(output_ids),
            ),
            tier_id=TierId.LOCAL,
            latency_ms=latency_ms,
        )
