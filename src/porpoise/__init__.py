"""
Porpoise: a namespaced cache store with a short-life in-process tier.
"""

from porpoise.cache import (
    MISSING,
    CacheStats,
    JsonSerializer,
    Namespacer,
    PorpoiseStore,
    ShortLifeCache,
    StoreConfig,
    create_store,
)
from porpoise.core.error_handling import (
    BackendError,
    BackendUnavailableError,
    ConfigurationError,
    InvalidNumericStateError,
    PorpoiseError,
    SerializationError,
)
from porpoise.storage import MemoryStorage, RedisAdapter, Storage

__version__ = "1.0.0"

__all__ = [
    "PorpoiseStore",
    "ShortLifeCache",
    "Namespacer",
    "JsonSerializer",
    "CacheStats",
    "MISSING",
    "StoreConfig",
    "create_store",
    "Storage",
    "MemoryStorage",
    "RedisAdapter",
    "PorpoiseError",
    "BackendError",
    "BackendUnavailableError",
    "SerializationError",
    "InvalidNumericStateError",
    "ConfigurationError",
]
