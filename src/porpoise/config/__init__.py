"""Configuration loading helpers."""

from porpoise.config.config_utils import ConfigLoader, load_config_with_env_vars

__all__ = ["ConfigLoader", "load_config_with_env_vars"]
