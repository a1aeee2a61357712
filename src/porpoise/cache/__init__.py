"""
Two-tier cache store for porpoise.

Provides:
- PorpoiseStore: namespaced cache façade over a backing Storage
- ShortLifeCache: bounded, time-limited in-process read cache

Example usage:
    from porpoise.cache import PorpoiseStore
    from porpoise.storage import MemoryStorage

    cache = PorpoiseStore(MemoryStorage(), namespace="users")
    await cache.write("42", {"name": "Ada"})
    await cache.read("42")
"""

from porpoise.cache.config import StoreConfig, create_store, get_cache_config, load_cache_config
from porpoise.cache.interface import MISSING, CacheEntry, CacheStats
from porpoise.cache.namespace import Namespacer
from porpoise.cache.serialization import JsonSerializer, Serializer
from porpoise.cache.short_life import ShortLifeCache
from porpoise.cache.store import PorpoiseStore

__all__ = [
    # Types
    "MISSING",
    "CacheEntry",
    "CacheStats",
    # Components
    "Namespacer",
    "ShortLifeCache",
    "PorpoiseStore",
    "Serializer",
    "JsonSerializer",
    # Configuration
    "StoreConfig",
    "create_store",
    "get_cache_config",
    "load_cache_config",
]
