"""
Storage Interface for the Porpoise Cache Store

Abstract backing key-value store over byte strings. The cache façade treats
it as the source of truth and never caches anything it has not read from or
written to a Storage implementation.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class Storage(ABC):
    """
    Abstract storage interface for the cache façade.

    Implementations include:
    - RedisAdapter: Production Redis-based storage
    - MemoryStorage: In-memory testing implementation
    """

    async def connect(self) -> bool:
        """Establish the backend connection."""
        return True

    async def close(self) -> bool:
        """Release the backend connection."""
        return True

    async def health_check(self) -> bool:
        """Check whether the backend is reachable."""
        return True

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Retrieve value by key.

        Args:
            key: Storage key

        Returns:
            Stored bytes or None if missing or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> bool:
        """
        Store value with optional TTL.

        Args:
            key: Storage key
            value: Bytes to store
            ttl: Time to live in seconds (None = no expiry, <= 0 = already expired)

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete key from storage.

        Args:
            key: Storage key

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check if key exists.

        Args:
            key: Storage key

        Returns:
            True if key exists, False otherwise
        """
        pass

    @abstractmethod
    async def scan(self, pattern: str = "*") -> List[str]:
        """
        List keys matching a glob pattern.

        Args:
            pattern: Glob pattern ("*", "?", "[...]" and backslash escapes)

        Returns:
            List of matching keys
        """
        pass

    @abstractmethod
    async def ttl(self, key: str) -> Optional[float]:
        """
        Remaining lifetime of a key.

        Args:
            key: Storage key

        Returns:
            Seconds left, or None if the key is missing or never expires
        """
        pass

    @abstractmethod
    async def increment(self, key: str, amount: int = 1) -> int:
        """
        Atomically increment an integer value.

        A missing key starts from 0. A value that is not a base-10 integer
        raises InvalidNumericStateError.

        Args:
            key: Counter key
            amount: Amount to add (can be negative)

        Returns:
            New counter value
        """
        pass

    @abstractmethod
    async def decrement(self, key: str, amount: int = 1) -> int:
        """
        Atomically decrement an integer value.

        Args:
            key: Counter key
            amount: Amount to subtract

        Returns:
            New counter value
        """
        pass

    @abstractmethod
    async def flush_namespace(self, prefix: Optional[str] = None) -> int:
        """
        Delete every key beginning with ``prefix``.

        Args:
            prefix: Literal key prefix; None flushes the whole store

        Returns:
            Number of keys removed
        """
        pass
