"""
Value serialization for the backing store.

The default JSON encoding writes integers as bare base-10 digits, which is
exactly what the backend's atomic INCRBY/DECRBY operate on.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from porpoise.core.error_handling import SerializationError


class Serializer(ABC):
    """Reversible encoding of cache values to bytes."""

    @abstractmethod
    def dumps(self, value: Any) -> bytes:
        pass

    @abstractmethod
    def loads(self, data: bytes) -> Any:
        pass


class JsonSerializer(Serializer):
    """Compact UTF-8 JSON.

    Tuples come back as lists and dict keys as strings; bytes and arbitrary
    objects are rejected with SerializationError.
    """

    def dumps(self, value: Any) -> bytes:
        try:
            return json.dumps(value, separators=(",", ":"), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Cannot serialize {type(value).__name__}: {e}",
                component="serializer",
            ) from e

    def loads(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (UnicodeDecodeError, ValueError) as e:
            raise SerializationError(
                f"Cannot deserialize stored value: {e}",
                component="serializer",
                context={"size": len(data)},
            ) from e
