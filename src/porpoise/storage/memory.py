"""
In-Memory Storage Implementation

Provides testing-friendly storage without external dependencies.
Supports TTL expiration, glob scans and atomic counters with the same
observable semantics as the Redis adapter.
"""

import asyncio
import re
import time
from typing import Callable, Dict, List, Optional

from porpoise.core.error_handling import InvalidNumericStateError
from porpoise.storage.base import Storage
from porpoise.storage.patterns import compile_glob

_INTEGER_RE = re.compile(rb"-?\d+")


class MemoryStorage(Storage):
    """
    In-memory storage implementation for testing.

    Features:
    - TTL support with lazy expiration
    - Atomic counters
    - Redis-style glob key matching
    - Coroutine-safe operations
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize empty in-memory storage.

        Args:
            clock: Time source in seconds (injectable for tests)
        """
        self._data: Dict[str, bytes] = {}
        self._expires: Dict[str, float] = {}  # key -> expiry timestamp
        self._clock = clock
        self._lock = asyncio.Lock()
        self.connected = False

    async def connect(self) -> bool:
        """Connect to storage (no-op for in-memory)."""
        self.connected = True
        return True

    async def close(self) -> bool:
        """Close storage connection (no-op for in-memory)."""
        self.connected = False
        return True

    async def health_check(self) -> bool:
        """Check storage health (always healthy for in-memory)."""
        return True

    def _expire_if_due(self, key: str) -> None:
        expiry = self._expires.get(key)
        if expiry is not None and self._clock() >= expiry:
            self._data.pop(key, None)
            del self._expires[key]

    def _cleanup_expired(self) -> None:
        """Remove expired keys (internal helper, caller holds the lock)."""
        now = self._clock()
        expired = [k for k, exp_time in self._expires.items() if now >= exp_time]
        for key in expired:
            self._data.pop(key, None)
            del self._expires[key]

    async def get(self, key: str) -> Optional[bytes]:
        """Retrieve value, returning None if missing or expired."""
        async with self._lock:
            self._expire_if_due(key)
            return self._data.get(key)

    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> bool:
        """Store value with optional TTL."""
        async with self._lock:
            self._data[key] = bytes(value)
            if ttl is not None:
                self._expires[key] = self._clock() + ttl
            else:
                self._expires.pop(key, None)
            return True

    async def delete(self, key: str) -> bool:
        """Delete key if it exists."""
        async with self._lock:
            self._expire_if_due(key)
            self._expires.pop(key, None)
            return self._data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        async with self._lock:
            self._expire_if_due(key)
            return key in self._data

    async def scan(self, pattern: str = "*") -> List[str]:
        """List live keys matching a glob pattern."""
        matcher = compile_glob(pattern)
        async with self._lock:
            self._cleanup_expired()
            return [k for k in self._data if matcher.fullmatch(k)]

    async def ttl(self, key: str) -> Optional[float]:
        """Remaining seconds before expiry, None if missing or persistent."""
        async with self._lock:
            self._expire_if_due(key)
            if key not in self._data or key not in self._expires:
                return None
            return max(0.0, self._expires[key] - self._clock())

    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically increment counter, starting from 0 if missing."""
        async with self._lock:
            self._expire_if_due(key)
            current = self._data.get(key)
            if current is None:
                base = 0
            elif _INTEGER_RE.fullmatch(current):
                base = int(current)
            else:
                raise InvalidNumericStateError(
                    f"Value at {key} is not an integer",
                    component="memory_storage",
                    context={"key": key},
                )
            new_value = base + amount
            # Existing expiry is kept, matching INCRBY
            self._data[key] = str(new_value).encode("ascii")
            return new_value

    async def decrement(self, key: str, amount: int = 1) -> int:
        """Atomically decrement counter."""
        return await self.increment(key, -amount)

    async def flush_namespace(self, prefix: Optional[str] = None) -> int:
        """Delete all keys beginning with prefix (everything if None)."""
        async with self._lock:
            self._cleanup_expired()
            if prefix is None:
                doomed = list(self._data)
            else:
                doomed = [k for k in self._data if k.startswith(prefix)]
            for key in doomed:
                del self._data[key]
                self._expires.pop(key, None)
            return len(doomed)

