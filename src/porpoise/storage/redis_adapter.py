"""
Redis adapter implementing the Storage interface.

Wraps Redis operations with connection handling, timeouts, bounded retries
and error translation. This adapter contains no caching policy, only
storage concerns. Values are raw bytes; serialization belongs to the store.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from porpoise.core.error_handling import (
    BackendError,
    BackendUnavailableError,
    InvalidNumericStateError,
)
from porpoise.logging_config import get_logger, log_error
from porpoise.storage.base import Storage
from porpoise.storage.patterns import escape_glob

logger = logging.getLogger(__name__)
events = get_logger(__name__)

_UNAVAILABLE_ERRORS = (asyncio.TimeoutError, RedisConnectionError, RedisTimeoutError)

SCAN_BATCH_SIZE = 100


class RedisAdapter(Storage):
    """
    Redis-backed storage implementation.

    Every failure is raised to the caller: connection problems as
    BackendUnavailableError, rejected commands as BackendError.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        timeout: float = 5.0,
        max_retries: int = 1,
        retry_delay: float = 0.5
    ):
        """
        Initialize Redis adapter.

        Args:
            redis_url: Redis connection URL
            timeout: Timeout for each operation in seconds
            max_retries: Attempts for idempotent operations (1 = no retry)
            retry_delay: Delay between retries in seconds
        """
        self.redis_url = redis_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.redis: Optional[aioredis.Redis] = None
        self.connected = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RedisAdapter":
        """
        Create adapter from configuration dictionary.

        Args:
            config: Configuration dict with keys like redis_url, timeout, etc.

        Returns:
            Configured RedisAdapter instance
        """
        return cls(
            redis_url=config.get("redis_url", "redis://localhost:6379"),
            timeout=config.get("timeout", 5.0),
            max_retries=config.get("max_retries", 1),
            retry_delay=config.get("retry_delay", 0.5)
        )

    async def connect(self) -> bool:
        """
        Establish connection to Redis.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.redis = aioredis.from_url(self.redis_url, decode_responses=False)
            await asyncio.wait_for(self.redis.ping(), timeout=self.timeout)
            self.connected = True
            logger.info(f"Connected to Redis: {self.redis_url}")
            return True
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            log_error(events, e, "redis_connect_failed", redis_url=self.redis_url)
            self.connected = False
            return False

    async def close(self) -> bool:
        """Close Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Redis connection closed")
        self.connected = False
        return True

    async def health_check(self) -> bool:
        """
        Check if Redis connection is healthy.

        Returns:
            True if healthy, False otherwise
        """
        if not self.connected:
            return False

        try:
            await self._execute("ping")
            return True
        except BackendError as e:
            log_error(events, e, "redis_health_check_failed", redis_url=self.redis_url)
            self.connected = False
            return False

    async def _execute(self, name: str, *args, retry: bool = True, **kwargs):
        """
        Execute a Redis command with timeout and bounded retry.

        Only connection-level failures are retried, and only when ``retry``
        is set; non-idempotent commands pass retry=False.

        Raises:
            BackendUnavailableError: Redis unreachable or timed out
            BackendError: Redis rejected the command
        """
        if not self.connected or self.redis is None:
            raise BackendUnavailableError(
                "Redis not connected",
                component="redis_adapter",
                context={"operation": name, "redis_url": self.redis_url},
            )

        attempts = self.max_retries if retry else 1
        last_error: Optional[BaseException] = None
        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(
                    getattr(self.redis, name)(*args, **kwargs),
                    timeout=self.timeout
                )
            except _UNAVAILABLE_ERRORS as e:
                last_error = e
                logger.warning(
                    f"Redis {name} failed (attempt {attempt + 1}/{attempts}): {e!r}"
                )
                if attempt < attempts - 1:
                    await asyncio.sleep(self.retry_delay)
            except ResponseError:
                raise
            except RedisError as e:
                raise BackendError(
                    f"Redis {name} failed: {e}",
                    component="redis_adapter",
                    context={"operation": name},
                ) from e

        raise BackendUnavailableError(
            f"Redis {name} failed after {attempts} attempt(s): {last_error!r}",
            component="redis_adapter",
            context={"operation": name, "redis_url": self.redis_url},
        ) from last_error

    async def _command(self, name: str, *args, retry: bool = True, **kwargs):
        """Run a command, mapping ResponseError to BackendError."""
        try:
            return await self._execute(name, *args, retry=retry, **kwargs)
        except ResponseError as e:
            raise BackendError(
                f"Redis {name} rejected: {e}",
                component="redis_adapter",
                context={"operation": name},
            ) from e

    async def get(self, key: str) -> Optional[bytes]:
        """
        Retrieve a value by key.

        Args:
            key: The key to retrieve

        Returns:
            The stored bytes or None if not found
        """
        return await self._command("get", key)

    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> bool:
        """
        Store a value with optional expiration.

        A non-positive TTL means the record is already expired, so the key
        is removed instead of written.

        Args:
            key: The key to store under
            value: Raw bytes
            ttl: Optional TTL in seconds (millisecond precision)

        Returns:
            True if successful
        """
        if ttl is not None and ttl <= 0:
            await self._command("delete", key)
            logger.debug(f"Set key {key} with non-positive TTL, removed")
            return True

        px = None if ttl is None else max(1, int(ttl * 1000))
        await self._command("set", key, value, px=px)
        logger.debug(f"Set key {key}" + (f" with TTL {ttl}s" if ttl else ""))
        return True

    async def delete(self, key: str) -> bool:
        """
        Delete a key.

        Args:
            key: The key to delete

        Returns:
            True if key was deleted, False if key didn't exist
        """
        result = await self._command("delete", key)
        deleted = result > 0
        if deleted:
            logger.debug(f"Deleted key {key}")
        return deleted

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        result = await self._command("exists", key)
        return result > 0

    async def scan(self, pattern: str = "*") -> List[str]:
        """
        Scan for keys matching a pattern using non-blocking SCAN.

        Args:
            pattern: Glob-style pattern (e.g., "prefix:*")

        Returns:
            List of matching keys
        """
        keys: List[str] = []
        cursor = 0

        while True:
            cursor, batch_keys = await self._command(
                "scan",
                cursor=cursor,
                match=pattern,
                count=SCAN_BATCH_SIZE
            )
            keys.extend(_decode_key(k) for k in batch_keys)
            if cursor == 0:
                break

        logger.debug(f"Scanned {len(keys)} keys matching {pattern}")
        # SCAN may return a key more than once
        return list(dict.fromkeys(keys))

    async def ttl(self, key: str) -> Optional[float]:
        """Remaining TTL in seconds, None if missing or persistent."""
        millis = await self._command("pttl", key)
        if millis is None or millis < 0:
            return None
        return millis / 1000.0

    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically increment via INCRBY."""
        return await self._counter("incrby", key, amount)

    async def decrement(self, key: str, amount: int = 1) -> int:
        """Atomically decrement via DECRBY."""
        return await self._counter("decrby", key, amount)

    async def _counter(self, command: str, key: str, amount: int) -> int:
        try:
            result = await self._execute(command, key, amount, retry=False)
        except ResponseError as e:
            raise InvalidNumericStateError(
                f"Value at {key} is not an integer: {e}",
                component="redis_adapter",
                context={"key": key, "operation": command},
            ) from e
        return int(result)

    async def flush_namespace(self, prefix: Optional[str] = None) -> int:
        """
        Delete all keys beginning with prefix.

        Without a prefix the whole logical database is flushed.
        """
        if prefix is None:
            size = await self._command("dbsize")
            await self._command("flushdb")
            logger.info(f"Flushed Redis database ({size} keys)")
            return int(size)

        keys = await self.scan(f"{escape_glob(prefix)}*")
        removed = 0
        for start in range(0, len(keys), SCAN_BATCH_SIZE):
            batch = keys[start:start + SCAN_BATCH_SIZE]
            removed += await self._command("delete", *batch)

        logger.info(f"Flushed {removed} Redis keys with prefix {prefix!r}")
        return removed


def _decode_key(key) -> str:
    if isinstance(key, bytes):
        return key.decode("utf-8")
    return key
