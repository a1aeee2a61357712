"""
Storage Abstraction Layer

Backing key-value stores the cache façade sits in front of.
"""

from porpoise.storage.base import Storage
from porpoise.storage.memory import MemoryStorage
from porpoise.storage.patterns import compile_glob, escape_glob, glob_match
from porpoise.storage.redis_adapter import RedisAdapter

__all__ = [
    "Storage",
    "MemoryStorage",
    "RedisAdapter",
    "compile_glob",
    "escape_glob",
    "glob_match",
]
