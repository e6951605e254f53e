"""
Deterministic mock backends for testing and development.

Always return the same output for the same prompt hash, making the whole
orchestration path reproducible without a model file or network calls.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

from tierflow.orchestration.backends.base import CompletionClient, LocalInferenceBackend

_MOCK_PREFIX = "[MOCK] "


class MockCompletionClient(CompletionClient):

    def __init__(self) -> None:
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        stop: list[str] | None = None,
    ) -> dict[str, Any]:
        self._call_count += 1
        prompt_hash = hashlib.sha256(prompt.encode()).hexdigest()

        content = (
            f"{_MOCK_PREFIX}Deterministic cloud response for prompt hash "
            f"{prompt_hash[:12]}."
        )

        return {
            "content": content,
            "usage": {
                "prompt_tokens": len(prompt.split()),
                "completion_tokens": len(content.split()),
            },
        }


class MockInferenceBackend(LocalInferenceBackend):
    """Word-level 'tokenizer' that echoes a fixed local reply."""

    model_file = "mock.onnx"
    tokenizer_file = "mock.tokenizer"

    def __init__(self) -> None:
        self._vocab: dict[str, int] = {}
        self._words: list[str] = []
        self.loaded_from: Path | None = None

    async def load(self, model_dir: Path) -> None:
        self.loaded_from = model_dir

    def tokenize(self, text: str) -> list[int]:
        return [self._word_id(word) for word in text.split()]

    async def infer(
        self, input_ids: list[int], max_new_tokens: int, temperature: float
    ) -> list[int]:
        digest = hashlib.sha256(" ".join(map(str, input_ids)).encode()).hexdigest()
        reply = f"{_MOCK_PREFIX}Deterministic local response for prompt hash {digest[:12]}."
        return self.tokenize(reply)[:max_new_tokens]

    def detokenize(self, ids: list[int]) -> str:
        return " ".join(self._words[i] for i in ids)

    def _word_id(self, word: str) -> int:
        if word not in self._vocab:
            self._vocab[word] = len(self._words)
            self._words.append(word)
        return self._vocab[word]
