"""Tests for the response cache and cache key."""

from __future__ import annotations

import pytest

from tierflow.orchestration.cache import CacheConfig, ResponseCache, make_cache_key
from tierflow.orchestration.errors import ConfigurationError
from tierflow.orchestration.models import LLMResponse, RequestOptions, TierId


def response(content: str = "hello") -> LLMResponse:
    return LLMResponse(content=content, tier_id=TierId.LOCAL, latency_ms=5.0)


class TestCacheKey:

    def test_orchestration_flags_do_not_change_key(self):
        a = RequestOptions(max_tokens=64, temperature=0.2, stop_sequences=["END"], task_type="explanation")
        b = RequestOptions(
            max_tokens=64,
            temperature=0.2,
            stop_sequences=["END"],
            task_type="explanation",
            skip_cache=True,
            cache_response=False,
            allow_fallback=False,
        )
        assert make_cache_key("prompt", a) == make_cache_key("prompt", b)

    def test_field_order_does_not_change_key(self):
        a = RequestOptions.model_validate({"temperature": 0.5, "max_tokens": 10, "allow_fallback": True})
        b = RequestOptions.model_validate({"max_tokens": 10, "skip_cache": False, "temperature": 0.5})
        assert make_cache_key("p", a) == make_cache_key("p", b)

    def test_cache_strategy_does_not_change_key(self):
        a = RequestOptions(cache_strategy="aggressive")
        assert make_cache_key("p", a) == make_cache_key("p", RequestOptions())

    @pytest.mark.parametrize(
        "options",
        [
            RequestOptions(max_tokens=11),
            RequestOptions(temperature=0.9),
            RequestOptions(stop_sequences=["STOP"]),
            RequestOptions(task_type="codeGeneration"),
        ],
    )
    def test_generation_options_change_key(self, options):
        assert make_cache_key("p", options) != make_cache_key("p", RequestOptions())

    def test_prompt_changes_key(self):
        assert make_cache_key("a", RequestOptions()) != make_cache_key("b", RequestOptions())

    def test_key_is_prefixed_hash(self):
        key = make_cache_key("p", RequestOptions())
        assert key.startswith("llm_cache:")
        assert len(key) == len("llm_cache:") + 64


class TestResponseCache:

    def test_get_missing_returns_none(self, clock):
        cache = ResponseCache(clock=clock)
        assert cache.get("nope") is None
        assert cache.stats().misses == 1

    def test_set_then_get(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("k", response())
        assert cache.get("k").content == "hello"
        assert cache.stats().hits == 1

    def test_entry_expires_after_ttl(self, clock):
        cache = ResponseCache(CacheConfig(max_items=10, ttl_seconds=60), clock=clock)
        cache.set("k", response())

        clock.advance(59)
        assert cache.get("k") is not None

        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_ttl_is_absolute_from_insertion(self, clock):
        cache = ResponseCache(CacheConfig(max_items=10, ttl_seconds=60), clock=clock)
        cache.set("k", response())
        for _ in range(5):
            clock.advance(10)
            assert cache.get("k") is not None
        clock.advance(10)
        assert cache.get("k") is None

    def test_reset_restarts_ttl(self, clock):
        cache = ResponseCache(CacheConfig(max_items=10, ttl_seconds=60), clock=clock)
        cache.set("k", response("old"))
        clock.advance(50)
        cache.set("k", response("new"))
        clock.advance(50)
        assert cache.get("k").content == "new"

    def test_lru_eviction_on_overflow(self, clock):
        cache = ResponseCache(CacheConfig(max_items=2, ttl_seconds=60), clock=clock)
        cache.set("a", response("a"))
        cache.set("b", response("b"))
        cache.get("a")  # "b" is now least recently used
        cache.set("c", response("c"))

        assert cache.get("b") is None
        assert cache.get("a").content == "a"
        assert cache.get("c").content == "c"
        assert cache.stats().evictions == 1

    def test_expired_entries_are_dropped_before_lru_eviction(self, clock):
        cache = ResponseCache(CacheConfig(max_items=2, ttl_seconds=60), clock=clock)
        cache.set("old", response("old"))
        clock.advance(30)
        cache.set("fresh", response("fresh"))
        cache.get("old")
        clock.advance(31)  # "old" expired, "fresh" still valid

        cache.set("new", response("new"))

        assert cache.get("fresh").content == "fresh"
        assert cache.get("new").content == "new"
        assert cache.stats().evictions == 0

    def test_clear_drops_everything(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("a", response())
        cache.set("b", response())
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_default_config(self):
        config = ResponseCache().config
        assert config.max_items == 500
        assert config.ttl_seconds == 3600

    @pytest.mark.parametrize("kwargs", [{"max_items": 0}, {"ttl_seconds": 0}, {"ttl_seconds": -1}])
    def test_invalid_config_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            CacheConfig(**kwargs)
