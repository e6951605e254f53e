from tierflow.orchestration.backends.base import CompletionClient, LocalInferenceBackend
from tierflow.orchestration.backends.mock import MockCompletionClient, MockInferenceBackend

__all__ = [
    "CompletionClient",
    "LocalInferenceBackend",
    "MockCompletionClient",
    "MockInferenceBackend",
]
