"""
Porpoise Cache Store

Cache façade over a backing Storage with a short-life cache in front of it.

Reads check the short-life cache first and fall through to the backend,
populating the short-life cache on a backend hit. Absence is never cached.
Writes go to the backend and then through to the short-life cache. Deletes,
counters and pattern deletes mutate the backend first and then invalidate
the short-life cache, so the next read fetches the authoritative value.

The short-life cache is process-local: two stores over the same backend may
serve values up to ``max_short_life_cache_age`` seconds stale to each other.
"""

import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from porpoise.cache.interface import MISSING, CacheStats
from porpoise.cache.namespace import Namespacer
from porpoise.cache.serialization import JsonSerializer, Serializer
from porpoise.cache.short_life import DEFAULT_MAX_AGE, DEFAULT_MAX_SIZE, ShortLifeCache
from porpoise.core.metrics import track_backend_call
from porpoise.logging_config import get_logger, log_cache_stats
from porpoise.storage.base import Storage

logger = logging.getLogger(__name__)
events = get_logger(__name__)

Producer = Callable[[str], Union[Any, Awaitable[Any]]]


class PorpoiseStore:
    """Namespaced two-tier cache store.

    Example:
        storage = MemoryStorage()
        cache = PorpoiseStore(storage, namespace="users")
        await cache.write("42", {"name": "Ada"}, expires_in=300)
        profile = await cache.fetch("43", producer=load_profile)
    """

    def __init__(
        self,
        storage: Storage,
        namespace: Optional[str] = None,
        max_short_life_cache_size: int = DEFAULT_MAX_SIZE,
        max_short_life_cache_age: float = DEFAULT_MAX_AGE,
        default_expires_in: Optional[float] = None,
        serializer: Optional[Serializer] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.

        Args:
            storage: Backing store, the source of truth
            namespace: Prefix isolating this store's keys in the backend
            max_short_life_cache_size: Entry cap of the short-life cache
            max_short_life_cache_age: Seconds a short-life entry may be served
            default_expires_in: Backend TTL used when a write gives none
            serializer: Value codec (default: JsonSerializer)
            clock: Monotonic time source for the short-life cache
        """
        self._storage = storage
        self._namespacer = Namespacer(namespace)
        self._slc = ShortLifeCache(
            max_size=max_short_life_cache_size,
            max_age=max_short_life_cache_age,
            clock=clock,
            namespace=namespace,
        )
        self._default_expires_in = default_expires_in
        self._serializer = serializer or JsonSerializer()

        logger.debug(
            f"PorpoiseStore initialized: namespace={namespace}, "
            f"slc_size={max_short_life_cache_size}, slc_age={max_short_life_cache_age}"
        )

    @classmethod
    def from_config(cls, config, storage: Optional[Storage] = None) -> "PorpoiseStore":
        """Build a store from a StoreConfig (see porpoise.cache.config)."""
        from porpoise.cache.config import create_store
        return create_store(config, storage=storage)

    @property
    def namespace(self) -> Optional[str]:
        return self._namespacer.namespace

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def short_life_cache(self) -> ShortLifeCache:
        return self._slc

    def namespaced_key(self, key: str) -> str:
        """Backend key for a logical key."""
        return self._namespacer.key(key)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def read(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent in both tiers."""
        value = await self._read_entry(key)
        return None if value is MISSING else value

    async def exists(self, key: str) -> bool:
        """True if ``read`` would find a value (a stored None counts)."""
        return await self._read_entry(key) is not MISSING

    async def read_multi(self, *keys: str) -> Dict[str, Any]:
        """Read several keys; only keys that were found appear in the result."""
        found: Dict[str, Any] = {}
        for key in keys:
            value = await self._read_entry(key)
            if value is not MISSING:
                found[key] = value
        return found

    async def fetch(
        self,
        key: str,
        producer: Optional[Producer] = None,
        expires_in: Optional[float] = None,
        force: bool = False,
    ) -> Optional[Any]:
        """Read ``key``, producing and storing a value on a miss.

        Args:
            key: Logical key
            producer: Called as ``producer(key)`` on a miss; may be async
            expires_in: Backend TTL for a produced value
            force: Skip the read and always call the producer, which must be given

        Returns:
            The cached or produced value; None on a miss without a producer
        """
        if not force:
            value = await self._read_entry(key)
            if value is not MISSING:
                return value

        if producer is None:
            if force:
                raise ValueError("fetch with force=True requires a producer")
            return None

        value = producer(key)
        if inspect.isawaitable(value):
            value = await value

        await self.write(key, value, expires_in=expires_in)
        logger.debug(f"Cache fetch produced value for {key}")
        return value

    async def fetch_multi(
        self,
        *keys: str,
        producer: Optional[Producer] = None,
        expires_in: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Apply ``fetch`` to each key independently.

        Returns:
            Mapping in request order from each key to its value (None when
            missing and no producer was given)
        """
        results: Dict[str, Any] = {}
        for key in keys:
            results[key] = await self.fetch(key, producer=producer, expires_in=expires_in)
        return results

    async def ttl(self, key: str) -> Optional[float]:
        """Remaining backend lifetime of ``key`` in seconds, if it expires."""
        with track_backend_call(self.namespace, "ttl"):
            return await self._storage.ttl(self._namespacer.key(key))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def write(self, key: str, value: Any, expires_in: Optional[float] = None) -> bool:
        """Store ``value`` in the backend and the short-life cache.

        Args:
            key: Logical key
            value: Serializable value
            expires_in: Backend TTL in seconds (default_expires_in if None)

        Returns:
            True once the backend accepted the write
        """
        data = self._serializer.dumps(value)
        ttl = expires_in if expires_in is not None else self._default_expires_in

        with track_backend_call(self.namespace, "set"):
            await self._storage.set(self._namespacer.key(key), data, ttl=ttl)

        # Cache the decoded form so both tiers return identical shapes
        self._slc.put(key, self._serializer.loads(data))
        logger.debug(f"Cache write: {key} (expires_in={ttl})")
        return True

    async def write_multi(self, mapping: Mapping[str, Any], expires_in: Optional[float] = None) -> bool:
        """Write every key/value pair in ``mapping``."""
        for key, value in mapping.items():
            await self.write(key, value, expires_in=expires_in)
        return True

    async def delete(self, key: str) -> bool:
        """Delete ``key`` from both tiers. Deleting a missing key is a no-op.

        Returns:
            True if the backend held the key
        """
        with track_backend_call(self.namespace, "delete"):
            existed = await self._storage.delete(self._namespacer.key(key))
        self._slc.invalidate(key)
        logger.debug(f"Cache delete: {key} (existed={existed})")
        return existed

    async def delete_matched(self, pattern: str) -> int:
        """Delete every key whose logical name matches a glob pattern.

        Returns:
            Number of backend keys deleted
        """
        with track_backend_call(self.namespace, "scan"):
            backend_keys = await self._storage.scan(self._namespacer.pattern(pattern))

        deleted = 0
        try:
            for backend_key in backend_keys:
                with track_backend_call(self.namespace, "delete"):
                    if await self._storage.delete(backend_key):
                        deleted += 1
        finally:
            # Some deletes may have landed even if a later one failed
            logical_keys = [self._namespacer.logical(k) for k in backend_keys]
            self._slc.invalidate_many(k for k in logical_keys if k is not None)
            self._slc.invalidate_matching(pattern)
        logger.debug(f"Cache delete_matched: {pattern} removed {deleted} keys")
        return deleted

    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically add ``amount`` to the integer at ``key``.

        A missing key counts from 0. A non-integer value raises
        InvalidNumericStateError.

        Returns:
            The new value
        """
        with track_backend_call(self.namespace, "increment"):
            value = await self._storage.increment(self._namespacer.key(key), amount)
        self._slc.invalidate(key)
        return value

    async def decrement(self, key: str, amount: int = 1) -> int:
        """Atomically subtract ``amount`` from the integer at ``key``."""
        with track_backend_call(self.namespace, "decrement"):
            value = await self._storage.decrement(self._namespacer.key(key), amount)
        self._slc.invalidate(key)
        return value

    async def clear(self) -> None:
        """Flush this namespace from the backend and empty the short-life cache."""
        try:
            with track_backend_call(self.namespace, "flush"):
                removed = await self._storage.flush_namespace(self._namespacer.prefix)
        finally:
            self._slc.clear()
        logger.info(f"Cache cleared: namespace={self.namespace}, {removed} backend keys removed")

    async def cleanup(self) -> int:
        """Purge expired short-life entries. The backend expires its own records.

        Returns:
            Number of short-life entries removed
        """
        return self._slc.purge_expired()

    def stats(self) -> CacheStats:
        """Short-life cache statistics."""
        return self._slc.stats()

    def log_stats(self, **extra) -> CacheStats:
        """Emit a cache_stats event for this store and return the snapshot."""
        stats = self._slc.stats()
        log_cache_stats(events, self.namespace, stats, **extra)
        return stats

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _read_entry(self, key: str) -> Any:
        backend_key = self._namespacer.key(key)

        value = self._slc.get(key)
        if value is not MISSING:
            return value

        generation = self._slc.generation
        with track_backend_call(self.namespace, "get"):
            data = await self._storage.get(backend_key)
        if data is None:
            return MISSING

        value = self._serializer.loads(data)
        self._slc.populate(key, value, generation)
        return value

    def __repr__(self) -> str:
        return (
            f"PorpoiseStore(namespace={self.namespace!r}, "
            f"storage={type(self._storage).__name__})"
        )
