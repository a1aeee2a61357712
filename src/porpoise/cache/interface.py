"""
Shared cache types.

MISSING distinguishes "no entry" from a cached None inside the store;
public read APIs translate it to None.
"""

from dataclasses import dataclass
from typing import Any


class _Missing:
    """Sentinel type for an absent cache entry."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@dataclass(frozen=True)
class CacheEntry:
    """A short-life cache entry. inserted_at is fixed at creation."""
    key: str
    value: Any
    inserted_at: float

    def age(self, now: float) -> float:
        return now - self.inserted_at


@dataclass
class CacheStats:
    """Short-life cache statistics."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    size: int = 0

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "size": self.size,
            "hit_rate": round(self.hit_rate(), 4),
        }
