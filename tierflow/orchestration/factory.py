"""
Construction helpers -- the one place that wires tierflow together.

Nothing here is a singleton: every call builds fresh tiers, router, cache and
orchestrator, so independent orchestrators never share hidden state.

Supported cloud providers (LLM_PROVIDER):

  mock        Built-in deterministic mock, no API key needed (default)
  openai      OpenAI API  -- needs OPENAI_API_KEY or LLM_API_KEY
  groq        Groq API    -- free tier, needs LLM_API_KEY
  gemini      Google AI   -- free tier, needs LLM_API_KEY
  openrouter  OpenRouter  -- free models available, needs LLM_API_KEY
  local       Any OpenAI-compatible local server (Ollama / LM Studio)

Supported local backends (LOCAL_BACKEND):

  onnx        ONNX Runtime + SentencePiece, needs the `local` extra (default)
  mock        Deterministic word-level mock
"""

from __future__ import annotations

from typing import Callable

from tierflow.logging.logger import get_logger, setup_logging
from tierflow.orchestration.backends.base import CompletionClient, LocalInferenceBackend
from tierflow.orchestration.backends.mock import MockCompletionClient, MockInferenceBackend
from tierflow.orchestration.backends.openai_client import PROVIDERS, OpenAICompletionClient
from tierflow.orchestration.config import OrchestratorConfig
from tierflow.orchestration.errors import ConfigurationError
from tierflow.orchestration.orchestrator import MultiModelOrchestrator
from tierflow.orchestration.preferences import PreferenceSource
from tierflow.orchestration.prompt import PromptFormatter
from tierflow.orchestration.router import ModelRouter
from tierflow.orchestration.tiers.cloud import CloudModelTier
from tierflow.orchestration.tiers.local import LocalModelTier

logger = get_logger(__name__)


def _onnx_backend() -> LocalInferenceBackend:
    from tierflow.orchestration.backends.onnx import OnnxInferenceBackend

    return OnnxInferenceBackend()


_LOCAL_BACKENDS: dict[str, Callable[[], LocalInferenceBackend]] = {
    "onnx": _onnx_backend,
    "mock": MockInferenceBackend,
}


def create_completion_client(provider_name: str) -> CompletionClient:
    name = provider_name.lower()
    if name == "mock":
        return MockCompletionClient()
    if name in PROVIDERS:
        return OpenAICompletionClient(provider_name=name)
    raise ConfigurationError(
        f"Unknown LLM provider '{name}'. "
        f"Available: mock, {', '.join(PROVIDERS)}"
    )


def create_local_backend(backend_name: str) -> LocalInferenceBackend:
    factory = _LOCAL_BACKENDS.get(backend_name.lower())
    if factory is None:
        raise ConfigurationError(
            f"Unknown local backend '{backend_name}'. Available: {', '.join(_LOCAL_BACKENDS)}"
        )
    return factory()


def build_orchestrator(
    config: OrchestratorConfig,
    cloud_tier: CloudModelTier,
    local_tier: LocalModelTier,
    preference_source: PreferenceSource | None = None,
) -> MultiModelOrchestrator:
    return MultiModelOrchestrator(
        cloud_tier=cloud_tier,
        local_tier=local_tier,
        router=ModelRouter(preference_source),
        prompt_formatter=PromptFormatter(),
        cache_config=config.cache,
        tier_timeout_s=config.tier_timeout_s,
        coalesce_requests=config.coalesce_requests,
    )


async def bootstrap(
    config: OrchestratorConfig | None = None,
    *,
    cloud_client: CompletionClient | None = None,
    local_backend: LocalInferenceBackend | None = None,
    preference_source: PreferenceSource | None = None,
    configure_logging: bool = True,
) -> MultiModelOrchestrator:
    """
    Build a ready-to-use orchestrator.

    Loads the local model when LOCAL_MODEL_DIR is configured; a broken local
    setup raises ConfigurationError immediately. Without a model directory
    the local tier stays uninitialized and LOCAL requests fall back to CLOUD.
    """
    config = config or OrchestratorConfig.from_env()
    if configure_logging:
        setup_logging(config.component_name, config.log_level)

    cloud_client = cloud_client or create_completion_client(config.llm_provider)
    local_backend = local_backend or create_local_backend(config.local_backend)

    local_tier = LocalModelTier(local_backend, config.local_max_context_tokens)
    if config.local_model_dir:
        await local_tier.initialize(config.local_model_dir)
    else:
        logger.warning("LOCAL_MODEL_DIR not set; LOCAL requests will fall back to CLOUD")

    orchestrator = build_orchestrator(
        config, CloudModelTier(cloud_client), local_tier, preference_source
    )
    logger.info(
        "Orchestrator initialized (provider=%s, local_backend=%s, cache=%d items/%ss)",
        config.llm_provider,
        config.local_backend,
        config.cache_max_items,
        config.cache_ttl_seconds,
    )
    return orchestrator
