"""
Configuration Utilities with Environment Variable Support

Loads YAML/JSON configuration files and substitutes placeholders like
${VAR_NAME} or ${VAR_NAME:default} from the environment.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Loads and processes configuration files with environment variable substitution.

    Supports placeholders in the format ${VAR_NAME} or ${VAR_NAME:default_value}.
    """

    # Regex pattern to match environment variable placeholders
    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def load_yaml(cls, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load YAML configuration file with environment variable substitution.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the file is empty
            yaml.YAMLError: If YAML parsing fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is None:
            raise ValueError(f"Configuration file is empty: {path}")

        return cls.process_env_vars(data)

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load JSON configuration file with environment variable substitution.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If JSON parsing fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return cls.process_env_vars(data)

    @classmethod
    def load_config(cls, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a YAML or JSON configuration file, chosen by extension.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is unsupported
        """
        path = Path(path)

        if path.suffix.lower() in ['.yaml', '.yml']:
            return cls.load_yaml(path)
        elif path.suffix.lower() == '.json':
            return cls.load_json(path)
        else:
            raise ValueError(f"Unsupported configuration file format: {path.suffix}")

    @classmethod
    def process_env_vars(cls, data: Any) -> Any:
        """Recursively substitute environment variables in a data structure."""
        if isinstance(data, dict):
            return {key: cls.process_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls.process_env_vars(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_var(data)
        else:
            return data

    @classmethod
    def _substitute_env_var(cls, value: str) -> Union[str, int, float, bool]:
        """
        Substitute environment variable placeholders in a string value.

        A value that is a single placeholder is converted to int, float or
        bool where possible; interpolated strings stay strings.

        Raises:
            ValueError: If required environment variable is not set
        """
        def replace_match(match):
            var_expr = match.group(1)

            if ':' in var_expr:
                var_name, default_value = var_expr.split(':', 1)
                var_name = var_name.strip()
                default_value = default_value.strip()
            else:
                var_name = var_expr.strip()
                default_value = None

            env_value = os.getenv(var_name)

            if env_value is None:
                if default_value is None:
                    raise ValueError(f"Required environment variable not set: {var_name}")
                env_value = default_value

            return env_value

        result = cls.ENV_VAR_PATTERN.sub(replace_match, value)

        if cls.ENV_VAR_PATTERN.fullmatch(value):
            return cls.convert_value(result)
        return result

    @classmethod
    def convert_value(cls, value: str) -> Union[str, int, float, bool]:
        """Convert a string to bool, int or float when it looks like one."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            if '.' not in value and 'e' not in value.lower():
                return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value


def load_config_with_env_vars(path: Union[str, Path],
                              fallback_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load configuration file with environment variable substitution and fallback.

    Raises:
        FileNotFoundError: If file doesn't exist and no fallback provided
    """
    try:
        return ConfigLoader.load_config(path)
    except FileNotFoundError:
        if fallback_data is not None:
            logger.warning(f"Configuration file not found: {path}, using fallback data")
            return ConfigLoader.process_env_vars(fallback_data)
        raise
