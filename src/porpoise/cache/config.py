"""
Cache store configuration.

Settings come from ``PORPOISE_*`` environment variables or from a YAML/JSON
file (optionally under a top-level ``cache:`` section). ``create_store``
turns a StoreConfig into a ready PorpoiseStore.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from porpoise.cache.namespace import NAMESPACE_SEPARATOR
from porpoise.cache.short_life import DEFAULT_MAX_AGE, DEFAULT_MAX_SIZE
from porpoise.config.config_utils import ConfigLoader
from porpoise.core.error_handling import ConfigurationError
from porpoise.storage.base import Storage
from porpoise.storage.memory import MemoryStorage
from porpoise.storage.redis_adapter import RedisAdapter

logger = logging.getLogger(__name__)

ENV_PREFIX = "PORPOISE_"

_ENV_FIELDS = {
    "namespace": "NAMESPACE",
    "max_short_life_cache_size": "SLC_MAX_SIZE",
    "max_short_life_cache_age": "SLC_MAX_AGE",
    "default_expires_in": "DEFAULT_EXPIRES_IN",
    "redis_url": "REDIS_URL",
    "timeout": "REDIS_TIMEOUT",
    "max_retries": "REDIS_MAX_RETRIES",
    "retry_delay": "REDIS_RETRY_DELAY",
}


@dataclass
class StoreConfig:
    """Construction-time settings for a PorpoiseStore."""
    namespace: Optional[str] = None
    max_short_life_cache_size: int = DEFAULT_MAX_SIZE
    max_short_life_cache_age: float = DEFAULT_MAX_AGE
    default_expires_in: Optional[float] = None
    redis_url: Optional[str] = None
    timeout: float = 5.0
    max_retries: int = 1
    retry_delay: float = 0.5

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for out-of-range settings."""
        problems = []
        if not isinstance(self.max_short_life_cache_size, int) or self.max_short_life_cache_size < 0:
            problems.append("max_short_life_cache_size must be a non-negative integer")
        if not _is_number(self.max_short_life_cache_age) or self.max_short_life_cache_age < 0:
            problems.append("max_short_life_cache_age must be a non-negative number")
        if self.default_expires_in is not None and not _is_number(self.default_expires_in):
            problems.append("default_expires_in must be a number or None")
        if not _is_number(self.timeout) or self.timeout <= 0:
            problems.append("timeout must be positive")
        if not isinstance(self.max_retries, int) or self.max_retries < 1:
            problems.append("max_retries must be at least 1")
        if self.namespace is not None and not isinstance(self.namespace, str):
            problems.append("namespace must be a string")
        elif self.namespace and NAMESPACE_SEPARATOR in self.namespace:
            problems.append(f"namespace may not contain {NAMESPACE_SEPARATOR!r}")

        if problems:
            raise ConfigurationError(
                "; ".join(problems),
                component="cache_config",
                context=asdict(self),
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """Build from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown cache settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_cache_config(environ: Optional[Mapping[str, str]] = None) -> StoreConfig:
    """Read a StoreConfig from ``PORPOISE_*`` environment variables.

    Args:
        environ: Mapping to read instead of os.environ
    """
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    for field_name, suffix in _ENV_FIELDS.items():
        raw = environ.get(f"{ENV_PREFIX}{suffix}")
        if raw is None or raw == "":
            continue
        if field_name in ("namespace", "redis_url"):
            data[field_name] = raw
        else:
            data[field_name] = ConfigLoader.convert_value(raw)
    return StoreConfig.from_dict(data)


def load_cache_config(path: Union[str, Path]) -> StoreConfig:
    """Read a StoreConfig from a YAML or JSON file.

    The settings may sit at the root or under a ``cache`` section.
    """
    data = ConfigLoader.load_config(path)
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping: {path}",
            component="cache_config",
        )
    section = data.get("cache", data)
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"'cache' section must be a mapping: {path}",
            component="cache_config",
        )
    return StoreConfig.from_dict(section)


def create_storage(config: StoreConfig) -> Storage:
    """Backend for a config: Redis when redis_url is set, memory otherwise.

    The returned storage still has to be connected.
    """
    if config.redis_url:
        return RedisAdapter(
            redis_url=config.redis_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
    logger.info("No redis_url configured, using in-memory storage")
    return MemoryStorage()


def create_store(config: Optional[StoreConfig] = None, storage: Optional[Storage] = None):
    """Create a PorpoiseStore from configuration.

    Args:
        config: Store settings (default: read from the environment)
        storage: Pre-built backend; overrides redis_url
    """
    from porpoise.cache.store import PorpoiseStore

    if config is None:
        config = get_cache_config()
    if storage is None:
        storage = create_storage(config)

    return PorpoiseStore(
        storage,
        namespace=config.namespace,
        max_short_life_cache_size=config.max_short_life_cache_size,
        max_short_life_cache_age=config.max_short_life_cache_age,
        default_expires_in=config.default_expires_in,
    )
