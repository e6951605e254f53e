from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


tier_requests = Counter(
    "tier_requests_total",
    "Total model tier calls by outcome",
    ["tier", "outcome"],
)

tier_latency = Histogram(
    "tier_latency_seconds",
    "Wall-clock latency of model tier calls",
    ["tier"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

llm_tokens = Counter(
    "llm_tokens_total",
    "Total LLM tokens consumed",
    ["tier", "direction"],
)

cache_events = Counter(
    "response_cache_events_total",
    "Response cache lookups, stores and evictions",
    ["event"],
)

fallbacks = Counter(
    "tier_fallbacks_total",
    "LOCAL to CLOUD fallback attempts by outcome",
    ["outcome"],
)


def render_metrics() -> tuple[bytes, str]:
    """Exposition payload and content type, for a host process to serve."""
    return generate_latest(), CONTENT_TYPE_LATEST
