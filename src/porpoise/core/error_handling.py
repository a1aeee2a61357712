"""
Error Hierarchy for the Porpoise Cache Store

Every failure the store surfaces to callers is a PorpoiseError subclass
carrying the component it came from and structured context for logging.
Absence of a key is never an error; it is reported as an absent value.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class PorpoiseError(Exception):
    """Base exception for all porpoise-specific errors."""

    def __init__(self, message: str, component: str = "unknown",
                 context: Optional[Dict[str, Any]] = None):
        """Initialize porpoise exception with metadata.

        Args:
            message: Error message
            component: Component where error occurred
            context: Additional context data
        """
        self.message = message
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to structured log format."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class BackendError(PorpoiseError):
    """Raised when the backing store rejects or fails an operation."""
    pass


class BackendUnavailableError(BackendError):
    """Raised when the backing store cannot be reached."""
    pass


class SerializationError(PorpoiseError):
    """Raised when a value cannot be encoded to or decoded from bytes."""
    pass


class InvalidNumericStateError(PorpoiseError):
    """Raised when increment/decrement targets a non-integer value."""
    pass


class ConfigurationError(PorpoiseError):
    """Raised when store configuration is invalid."""
    pass
