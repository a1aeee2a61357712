"""Shared error types and metrics."""

from porpoise.core.error_handling import (
    BackendError,
    BackendUnavailableError,
    ConfigurationError,
    InvalidNumericStateError,
    PorpoiseError,
    SerializationError,
)

__all__ = [
    "PorpoiseError",
    "BackendError",
    "BackendUnavailableError",
    "SerializationError",
    "InvalidNumericStateError",
    "ConfigurationError",
]
