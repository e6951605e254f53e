"""Backend capabilities injected into the tiers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class LocalInferenceBackend(ABC):
    """
    On-device inference engine (tokenizer + model).

    model_file and tokenizer_file name the assets that load() expects to
    find inside the model directory.
    """

    model_file: str
    tokenizer_file: str

    @abstractmethod
    async def load(self, model_dir: Path) -> None:
        """Load model and tokenizer. Called exactly once."""

    @abstractmethod
    def tokenize(self, text: str) -> list[int]:
        ...

    @abstractmethod
    async def infer(
        self, input_ids: list[int], max_new_tokens: int, temperature: float
    ) -> list[int]:
        ...

    @abstractmethod
    def detokenize(self, ids: list[int]) -> str:
        ...


class CompletionClient(ABC):
    """
    Remote completion service.

    complete() returns either the completion text, or a mapping / object
    exposing `content` and an optional `usage` mapping with
    prompt_tokens, completion_tokens, cache_read_tokens, cache_write_tokens.
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        stop: list[str] | None = None,
    ) -> Any:
        ...
