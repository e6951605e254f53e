from tierflow.orchestration.base import ModelTier
from tierflow.orchestration.cache import CacheConfig, ResponseCache, make_cache_key
from tierflow.orchestration.errors import (
    CompoundFailureError,
    ConfigurationError,
    OrchestrationError,
    TierError,
    TierErrorKind,
)
from tierflow.orchestration.factory import bootstrap, build_orchestrator, create_completion_client
from tierflow.orchestration.models import (
    LLMResponse,
    ModelRequestOptions,
    ModelResponse,
    RequestOptions,
    TaskType,
    TierId,
    TokenUsage,
)
from tierflow.orchestration.orchestrator import MultiModelOrchestrator
from tierflow.orchestration.preferences import ModelPreference
from tierflow.orchestration.prompt import PromptFormatter
from tierflow.orchestration.router import ModelRouter

__all__ = [
    "ModelTier",
    "CacheConfig",
    "ResponseCache",
    "make_cache_key",
    "CompoundFailureError",
    "ConfigurationError",
    "OrchestrationError",
    "TierError",
    "TierErrorKind",
    "bootstrap",
    "build_orchestrator",
    "create_completion_client",
    "LLMResponse",
    "ModelRequestOptions",
    "ModelResponse",
    "RequestOptions",
    "TaskType",
    "TierId",
    "TokenUsage",
    "MultiModelOrchestrator",
    "ModelPreference",
    "PromptFormatter",
    "ModelRouter",
]
