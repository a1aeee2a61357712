"""
Short-Life Cache

Bounded, process-local, insertion-ordered cache tier that absorbs read
bursts on hot keys before they reach the backing store.

Eviction policy:
- Size: at most ``max_size`` entries; the oldest *inserted* entry goes first
  (FIFO, reads never reorder entries).
- Age: an entry older than ``max_age`` seconds is never served. It is purged
  lazily when read, or in bulk by ``purge_expired``.

All state lives behind one threading.Lock. No method awaits, so the lock is
never held across a backend round-trip.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Iterable, List, Optional

from porpoise.cache.interface import MISSING, CacheEntry, CacheStats
from porpoise.core import metrics
from porpoise.core.error_handling import ConfigurationError
from porpoise.storage.patterns import compile_glob

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100
DEFAULT_MAX_AGE = 1.0  # seconds


class ShortLifeCache:
    """Thread-safe FIFO cache with a size cap and a maximum entry age.

    Every mutation advances a generation counter. Read-through callers take
    ``generation`` before going to the backend and hand it back to
    ``populate``; if anything was written or invalidated in the meantime the
    populate is dropped, so a slow read can't resurrect a deleted value.

    Example:
        slc = ShortLifeCache(max_size=128, max_age=1.0)
        slc.put("user:1", {"name": "Ada"})
        slc.get("user:1")
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        max_age: float = DEFAULT_MAX_AGE,
        clock: Callable[[], float] = time.monotonic,
        namespace: Optional[str] = None,
    ):
        """Initialize the short-life cache.

        Args:
            max_size: Maximum number of entries (0 disables the tier)
            max_age: Maximum age in seconds an entry may be served at
            clock: Monotonic time source in seconds
            namespace: Store namespace, used only as a metrics label
        """
        if max_size < 0:
            raise ConfigurationError(
                f"max_size must be >= 0, got {max_size}",
                component="short_life_cache",
            )
        if max_age < 0:
            raise ConfigurationError(
                f"max_age must be >= 0, got {max_age}",
                component="short_life_cache",
            )

        self._max_size = max_size
        self._max_age = max_age
        self._clock = clock
        self._label = metrics.namespace_label(namespace)

        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._generation = 0

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        logger.debug(
            f"ShortLifeCache initialized: max_size={max_size}, max_age={max_age}"
        )

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def max_age(self) -> float:
        return self._max_age

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Any:
        """Return the cached value, or MISSING if absent or too old.

        A present-but-expired entry is removed as a side effect.
        """
        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self._record_miss()
                return MISSING

            if entry.age(self._clock()) > self._max_age:
                del self._entries[key]
                self._expirations += 1
                metrics.SLC_EVICTIONS_TOTAL.labels(namespace=self._label, reason="age").inc()
                self._update_size()
                self._record_miss()
                logger.debug(f"Short-life entry expired: {key}")
                return MISSING

            self._hits += 1
            metrics.SLC_HITS_TOTAL.labels(namespace=self._label).inc()
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite ``key`` with a fresh timestamp."""
        with self._lock:
            self._generation += 1
            self._insert(key, value)

    def populate(self, key: str, value: Any, generation: int) -> bool:
        """Insert a value read from the backend, unless the cache changed since.

        Args:
            key: Logical key
            value: Decoded backend value
            generation: Value of ``generation`` taken before the backend read

        Returns:
            True if the entry was stored
        """
        with self._lock:
            if generation != self._generation:
                logger.debug(f"Skipped stale populate for {key}")
                return False
            self._insert(key, value)
            return key in self._entries

    def invalidate(self, key: str) -> bool:
        """Remove ``key`` if present; True if something was removed."""
        with self._lock:
            self._generation += 1
            removed = self._entries.pop(key, None) is not None
            if removed:
                self._update_size()
                logger.debug(f"Short-life entry invalidated: {key}")
            return removed

    def invalidate_many(self, keys: Iterable[str]) -> int:
        """Remove every key in ``keys``; returns how many were present."""
        with self._lock:
            self._generation += 1
            removed = 0
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
            if removed:
                self._update_size()
            return removed

    def invalidate_matching(self, pattern: str) -> int:
        """Remove all keys matching a glob pattern (``*`` = any sequence)."""
        matcher = compile_glob(pattern)
        with self._lock:
            self._generation += 1
            doomed = [key for key in self._entries if matcher.fullmatch(key)]
            for key in doomed:
                del self._entries[key]
            if doomed:
                self._update_size()
                logger.debug(f"Short-life cache dropped {len(doomed)} keys matching {pattern}")
            return len(doomed)

    def clear(self) -> int:
        """Empty the cache; returns the number of entries dropped."""
        with self._lock:
            self._generation += 1
            count = len(self._entries)
            self._entries.clear()
            self._update_size()
            logger.info(f"Short-life cache cleared: {count} entries removed")
            return count

    def purge_expired(self) -> int:
        """Remove every entry older than ``max_age``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if entry.age(now) > self._max_age
            ]
            for key in expired:
                del self._entries[key]
            if expired:
                self._expirations += len(expired)
                metrics.SLC_EVICTIONS_TOTAL.labels(
                    namespace=self._label, reason="age"
                ).inc(len(expired))
                self._update_size()
                logger.debug(f"Short-life cleanup: {len(expired)} expired entries removed")
            return len(expired)

    def age(self, key: str) -> Optional[float]:
        """Seconds since ``key`` was inserted, or None if not held."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return entry.age(self._clock())

    def keys(self) -> List[str]:
        """Held keys, oldest insertion first (including not-yet-purged expired ones)."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                size=len(self._entries),
            )

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _insert(self, key: str, value: Any) -> None:
        if self._max_size == 0:
            return

        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())

        while len(self._entries) > self._max_size:
            evicted_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            metrics.SLC_EVICTIONS_TOTAL.labels(namespace=self._label, reason="size").inc()
            logger.debug(f"Short-life cache evicted oldest key: {evicted_key}")

        self._update_size()

    def _record_miss(self) -> None:
        self._misses += 1
        metrics.SLC_MISSES_TOTAL.labels(namespace=self._label).inc()

    def _update_size(self) -> None:
        metrics.SLC_SIZE.labels(namespace=self._label).set(len(self._entries))
