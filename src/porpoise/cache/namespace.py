"""
Key namespacing.

Logical keys are prefixed with ``<namespace>:`` to form backend keys. The
prefix is fixed per instance, so distinct logical keys never collide. A
namespace may not contain the separator, so no namespace prefix is a prefix
of another namespace's keys.
"""

from typing import Optional

from porpoise.core.error_handling import ConfigurationError
from porpoise.storage.patterns import escape_glob

NAMESPACE_SEPARATOR = ":"


class Namespacer:
    """Maps logical keys and patterns to backend keys and back."""

    def __init__(self, namespace: Optional[str] = None):
        if namespace and NAMESPACE_SEPARATOR in namespace:
            raise ConfigurationError(
                f"Namespace may not contain {NAMESPACE_SEPARATOR!r}: {namespace!r}",
                component="namespacer",
            )
        self.namespace = namespace or None

    @property
    def prefix(self) -> Optional[str]:
        """Literal backend prefix, or None when no namespace is set."""
        if self.namespace is None:
            return None
        return f"{self.namespace}{NAMESPACE_SEPARATOR}"

    def key(self, logical_key: str) -> str:
        if not isinstance(logical_key, str):
            raise TypeError(f"Cache keys must be str, got {type(logical_key).__name__}")
        if self.namespace is None:
            return logical_key
        return f"{self.prefix}{logical_key}"

    def pattern(self, logical_pattern: str) -> str:
        """Backend glob for a logical pattern; the namespace matches literally."""
        if self.namespace is None:
            return logical_pattern
        return f"{escape_glob(self.prefix)}{logical_pattern}"

    def logical(self, backend_key: str) -> Optional[str]:
        """Strip the prefix, returning None for keys outside the namespace."""
        prefix = self.prefix
        if prefix is None:
            return backend_key
        if not backend_key.startswith(prefix):
            return None
        return backend_key[len(prefix):]

    def __repr__(self) -> str:
        return f"Namespacer(namespace={self.namespace!r})"
