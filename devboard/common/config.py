"""
Configuration loader for devboard.
Reads the dashboard YAML file and validates it into a DevboardConfig.
"""

import logging
from typing import Any

import yaml
from pydantic import ValidationError

from devboard.models import DevboardConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "devboard.yaml"


class ConfigError(Exception):
    """Raised when the dashboard configuration cannot be loaded."""


def merge_configs(default: dict, override: dict) -> dict:
    """Recursively merge two dictionaries."""
    for key, value in override.items():
        if isinstance(value, dict) and key in default and isinstance(default[key], dict):
            default[key] = merge_configs(default[key], value)
        else:
            default[key] = value
    return default


def load_raw_config(config_path: str) -> dict[str, Any]:
    """Load the YAML mapping stored at config_path."""
    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file {config_path}: {e}") from e

    if raw is None:
        logger.warning(f"Configuration file {config_path} is empty, using defaults")
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")
    return raw


def load_devboard_config(
    config_path: str | None = None, overrides: dict[str, Any] | None = None
) -> DevboardConfig:
    """
    Load and validate the dashboard configuration.

    Args:
        config_path: Path to the YAML file, defaults to devboard.yaml
        overrides: Values merged over the file contents before validation,
            e.g. a mode chosen on the command line

    Returns:
        The validated configuration

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    path = config_path or DEFAULT_CONFIG_PATH
    raw = load_raw_config(path)
    if overrides:
        raw = merge_configs(raw, overrides)

    try:
        config = DevboardConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e

    logger.info(
        f"Loaded configuration from {path}: {len(config.workers)} workers, mode={config.mode.value}"
    )
    return config
