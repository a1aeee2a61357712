"""
Tests for cache Prometheus metrics.
"""

import pytest

from porpoise.cache.short_life import ShortLifeCache
from porpoise.core.metrics import (
    REGISTRY,
    get_metrics_content_type,
    get_metrics_text,
    namespace_label,
    track_backend_call,
)


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_namespace_label():
    assert namespace_label("users") == "users"
    assert namespace_label(None) == ""


def test_slc_hit_miss_and_size(clock):
    """Test the short-life cache reports hits, misses and size."""
    ns = "metrics-slc"
    hits = sample("porpoise_slc_hits_total", namespace=ns)
    misses = sample("porpoise_slc_misses_total", namespace=ns)
    slc = ShortLifeCache(max_size=2, max_age=1.0, clock=clock, namespace=ns)

    slc.put("a", 1)
    slc.get("a")
    slc.get("b")

    assert sample("porpoise_slc_hits_total", namespace=ns) == hits + 1
    assert sample("porpoise_slc_misses_total", namespace=ns) == misses + 1
    assert sample("porpoise_slc_size", namespace=ns) == 1


def test_slc_evictions_by_reason(clock):
    ns = "metrics-evict"
    by_size = sample("porpoise_slc_evictions_total", namespace=ns, reason="size")
    by_age = sample("porpoise_slc_evictions_total", namespace=ns, reason="age")
    slc = ShortLifeCache(max_size=1, max_age=1.0, clock=clock, namespace=ns)

    slc.put("a", 1)
    slc.put("b", 2)
    clock.advance(2)
    slc.get("b")

    assert sample("porpoise_slc_evictions_total", namespace=ns, reason="size") == by_size + 1
    assert sample("porpoise_slc_evictions_total", namespace=ns, reason="age") == by_age + 1
    assert sample("porpoise_slc_size", namespace=ns) == 0


def test_track_backend_call_success():
    ns = "metrics-backend"
    calls = sample("porpoise_backend_operations_total", namespace=ns, operation="get")
    observed = sample("porpoise_backend_latency_seconds_count", operation="get")

    with track_backend_call(ns, "get"):
        pass

    assert sample("porpoise_backend_operations_total", namespace=ns, operation="get") == calls + 1
    assert sample("porpoise_backend_latency_seconds_count", operation="get") == observed + 1


def test_track_backend_call_failure():
    """Test failures are counted and re-raised."""
    ns = "metrics-backend-error"
    errors = sample("porpoise_backend_errors_total", namespace=ns, operation="set")

    with pytest.raises(RuntimeError):
        with track_backend_call(ns, "set"):
            raise RuntimeError("down")

    assert sample("porpoise_backend_errors_total", namespace=ns, operation="set") == errors + 1


@pytest.mark.asyncio
async def test_store_operations_are_tracked(make_store):
    store = make_store("metrics-store")
    writes = sample("porpoise_backend_operations_total", namespace="metrics-store", operation="set")

    await store.write("foo", "bar")
    await store.read("foo")

    assert sample(
        "porpoise_backend_operations_total", namespace="metrics-store", operation="set"
    ) == writes + 1
    # Served by the short-life cache, so no backend get was issued
    assert sample("porpoise_backend_operations_total", namespace="metrics-store", operation="get") == 0


def test_metrics_text(clock):
    ShortLifeCache(max_size=1, clock=clock, namespace="metrics-text").put("a", 1)

    text = get_metrics_text()

    assert "porpoise_slc_size" in text
    assert 'namespace="metrics-text"' in text
    assert get_metrics_content_type().startswith("text/plain")
