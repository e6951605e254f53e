"""
ONNX Runtime inference backend for the local tier.

Expects an exported causal LM and its SentencePiece tokenizer in the model
directory. The exported graph takes `input_ids` (int64, shape [1, n]) and
returns generated ids as `output_ids` (or its first output). Graphs that
declare a `temperature` input also receive the sampling temperature.
Inference is CPU-bound and runs in a worker thread so the event loop keeps
serving other requests.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from tierflow.orchestration.backends.base import LocalInferenceBackend

logger = logging.getLogger(__name__)

DEFAULT_MODEL_FILE = "tinyllama-1b.onnx"
DEFAULT_TOKENIZER_FILE = "tokenizer.model"


class OnnxInferenceBackend(LocalInferenceBackend):

    def __init__(
        self,
        model_file: str = DEFAULT_MODEL_FILE,
        tokenizer_file: str = DEFAULT_TOKENIZER_FILE,
        num_threads: int = 4,
    ) -> None:
        self.model_file = model_file
        self.tokenizer_file = tokenizer_file
        self._num_threads = num_threads
        self._session: Any = None
        self._tokenizer: Any = None
        self._np: Any = None
        self._input_names: set[str] = set()

    async def load(self, model_dir: Path) -> None:
        try:
            import numpy as np
            import onnxruntime
            import sentencepiece
        except ImportError as exc:
            raise ImportError(
                "Local inference needs numpy, onnxruntime and sentencepiece. "
                "Install them with: pip install 'tierflow[local]'"
            ) from exc

        opts = onnxruntime.SessionOptions()
        opts.graph_optimization_level = onnxruntime.GraphOptimizationLevel.ORT_ENABLE_ALL
        opts.execution_mode = onnxruntime.ExecutionMode.ORT_SEQUENTIAL
        opts.intra_op_num_threads = self._num_threads
        opts.inter_op_num_threads = self._num_threads

        model_path = str(model_dir / self.model_file)
        tokenizer_path = str(model_dir / self.tokenizer_file)

        self._session = await asyncio.to_thread(
            onnxruntime.InferenceSession,
            model_path,
            sess_options=opts,
            providers=["CPUExecutionProvider"],
        )
        self._tokenizer = sentencepiece.SentencePieceProcessor(model_file=tokenizer_path)
        self._np = np
        self._input_names = {i.name for i in self._session.get_inputs()}
        logger.info("Loaded ONNX model %s", model_path)

    def tokenize(self, text: str) -> list[int]:
        return list(self._tokenizer.encode(text, out_type=int))

    async def infer(
        self, input_ids: list[int], max_new_tokens: int, temperature: float
    ) -> list[int]:
        return await asyncio.to_thread(self._run, input_ids, max_new_tokens, temperature)

    def detokenize(self, ids: list[int]) -> str:
        return self._tokenizer.decode(ids)

    def _run(
        self, input_ids: list[int], max_new_tokens: int, temperature: float
    ) -> list[int]:
        np = self._np
        feeds = {"input_ids": np.array([input_ids], dtype=np.int64)}
        if "temperature" in self._input_names:
            feeds["temperature"] = np.array([temperature], dtype=np.float32)

        output_names = [o.name for o in self._session.get_outputs()]
        output = "output_ids" if "output_ids" in output_names else output_names[0]
        (ids,) = self._session.run([output], feeds)
        generated = [int(token) for token in np.asarray(ids).reshape(-1)]
        return generated[:max_new_tokens]
