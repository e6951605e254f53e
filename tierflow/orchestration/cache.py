"""
Response cache for the orchestrator.

In-memory only, lost on restart. Entries are keyed by a hash of the prompt
and the generation-relevant options, bounded by an entry count
(least-recently-used eviction) and by a TTL counted from insertion.

Mutations are not locked: the cache is only touched from the event loop
thread that runs the orchestrator.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from tierflow.orchestration.errors import ConfigurationError
from tierflow.orchestration.models import LLMResponse, RequestOptions
from tierflow.observability.metrics import cache_events

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 500
DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class CacheConfig:
    max_items: int = DEFAULT_MAX_ITEMS
    ttl_seconds: float = DEFAULT_TTL_SECONDS

    def __post_init__(self) -> None:
        if self.max_items < 1:
            raise ConfigurationError(f"max_items must be >= 1, got {self.max_items}")
        if self.ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be > 0, got {self.ttl_seconds}")


@dataclass(frozen=True)
class CacheStats:
    size: int
    hits: int
    misses: int
    evictions: int


def make_cache_key(prompt: str, options: RequestOptions) -> str:
    """Canonical key over the prompt and the options that change the completion."""
    raw = json.dumps(
        {
            "prompt": prompt,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "stop_sequences": options.stop_sequences,
            "task_type": options.task_type,
        },
        sort_keys=True,
    )
    return f"llm_cache:{hashlib.sha256(raw.encode()).hexdigest()}"


class ResponseCache:
    """LRU + TTL map from cache key to LLMResponse."""

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._store: OrderedDict[str, tuple[float, LLMResponse]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> LLMResponse | None:
        entry = self._store.get(key)
        if entry is None:
            self._record_miss()
            return None

        stored_at, value = entry
        if self._clock() - stored_at >= self._config.ttl_seconds:
            del self._store[key]
            logger.debug("Cache entry %s expired", key[:24])
            self._record_miss()
            return None

        self._store.move_to_end(key)
        self._hits += 1
        cache_events.labels(event="hit").inc()
        return value

    def set(self, key: str, value: LLMResponse) -> None:
        if key in self._store:
            del self._store[key]
        elif len(self._store) >= self._config.max_items:
            self._purge_expired()

        if len(self._store) >= self._config.max_items:
            evicted_key, _ = self._store.popitem(last=False)
            self._evictions += 1
            cache_events.labels(event="evict").inc()
            logger.debug("Cache full, evicted %s", evicted_key[:24])

        self._store[key] = (self._clock(), value)
        cache_events.labels(event="store").inc()

    def clear(self) -> None:
        count = len(self._store)
        self._store.clear()
        logger.info("Response cache cleared (%d entries)", count)

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._store),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
        )

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, (stored_at, _) in self._store.items()
            if now - stored_at >= self._config.ttl_seconds
        ]
        for key in expired:
            del self._store[key]

    def _record_miss(self) -> None:
        self._misses += 1
        cache_events.labels(event="miss").inc()
