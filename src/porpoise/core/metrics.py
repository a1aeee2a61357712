"""
Prometheus Metrics for the Porpoise Cache Store

Exposes metrics for:
- Short-life cache hits, misses and evictions
- Short-life cache size
- Backend operation counts, failures and latency
"""

from prometheus_client import (
    Counter, Gauge, Histogram,
    CollectorRegistry, generate_latest,
    CONTENT_TYPE_LATEST
)
import time
from contextlib import contextmanager
from typing import Iterator, Optional

# Create a registry for porpoise metrics
REGISTRY = CollectorRegistry()

# ============================================================================
# Short-Life Cache Metrics
# ============================================================================

SLC_HITS_TOTAL = Counter(
    'porpoise_slc_hits_total',
    'Reads served from the short-life cache',
    ['namespace'],
    registry=REGISTRY
)

SLC_MISSES_TOTAL = Counter(
    'porpoise_slc_misses_total',
    'Reads that fell through to the backend',
    ['namespace'],
    registry=REGISTRY
)

SLC_EVICTIONS_TOTAL = Counter(
    'porpoise_slc_evictions_total',
    'Short-life cache entries dropped by the eviction policy',
    ['namespace', 'reason'],  # 'size' or 'age'
    registry=REGISTRY
)

SLC_SIZE = Gauge(
    'porpoise_slc_size',
    'Entries currently held in the short-life cache',
    ['namespace'],
    registry=REGISTRY
)

# ============================================================================
# Backend Metrics
# ============================================================================

BACKEND_OPERATIONS_TOTAL = Counter(
    'porpoise_backend_operations_total',
    'Calls issued to the backing store',
    ['namespace', 'operation'],
    registry=REGISTRY
)

BACKEND_ERRORS_TOTAL = Counter(
    'porpoise_backend_errors_total',
    'Backing store calls that raised',
    ['namespace', 'operation'],
    registry=REGISTRY
)

BACKEND_LATENCY = Histogram(
    'porpoise_backend_latency_seconds',
    'Latency of backing store calls',
    ['operation'],
    registry=REGISTRY
)


# ============================================================================
# Helper Functions
# ============================================================================

def namespace_label(namespace: Optional[str]) -> str:
    return namespace or ""


@contextmanager
def track_backend_call(namespace: Optional[str], operation: str) -> Iterator[None]:
    """
    Count a backend call and observe its latency, recording failures.

    Usage:
        with track_backend_call("users", "get"):
            data = await storage.get(key)
    """
    label = namespace_label(namespace)
    BACKEND_OPERATIONS_TOTAL.labels(namespace=label, operation=operation).inc()
    start = time.perf_counter()
    try:
        yield
    except Exception:
        BACKEND_ERRORS_TOTAL.labels(namespace=label, operation=operation).inc()
        raise
    finally:
        BACKEND_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)


def get_metrics_text() -> str:
    """Get all metrics in Prometheus text format"""
    return generate_latest(REGISTRY).decode('utf-8')


def get_metrics_content_type() -> str:
    """Get content type for Prometheus metrics"""
    return CONTENT_TYPE_LATEST
