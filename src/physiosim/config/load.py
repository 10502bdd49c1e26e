"""Configuration loading utilities."""

from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, Any, Union, Optional

import pydantic
import structlog

from ..contracts.errors import ConfigurationError
from .model import AppConfig

logger = structlog.get_logger()

ENV_PREFIX = "PHYSIOSIM_"
ENV_CONFIG = "PHYSIOSIM_CONFIG"


def default_config() -> AppConfig:
    """Create default configuration."""
    return AppConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load configuration from file or environment.

    Args:
        path: Path to configuration file. If None, looks for:
              - PHYSIOSIM_CONFIG environment variable
              - physiosim.toml in current directory
              - ~/.physiosim/config.toml

    Returns:
        Loaded configuration with environment overrides applied

    Raises:
        ConfigurationError: If configuration file is invalid or not found
    """
    if path is None:
        path = _find_config_file()

    if path is None:
        return _apply_env_overrides(default_config())

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}", {"file": str(path)})

    try:
        config = AppConfig.from_toml_file(path)
    except (OSError, ValueError) as e:
        # pydantic.ValidationError and TOMLDecodeError are both ValueErrors
        details: Dict[str, Any] = {"file": str(path)}
        if isinstance(e, pydantic.ValidationError):
            details["errors"] = e.errors()
        raise ConfigurationError(f"Failed to load config from {path}: {e}", details) from e

    logger.debug("Configuration loaded", file=str(path))
    return _apply_env_overrides(config)


def _find_config_file() -> Optional[Path]:
    """Find configuration file using standard search paths."""

    # 1. Environment variable
    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        return Path(env_path)

    # 2. Current directory
    cwd_config = Path("physiosim.toml")
    if cwd_config.exists():
        return cwd_config

    # 3. User config directory
    user_config = Path.home() / ".physiosim" / "config.toml"
    if user_config.exists():
        return user_config

    return None


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply environment variable overrides to configuration.

    Environment variables follow pattern: PHYSIOSIM_<SECTION>_<KEY>
    Examples:
        PHYSIOSIM_ENGINE_GRID_STEP_MIN=1
        PHYSIOSIM_DEBUG_ENABLE_COUPLINGS=false
        PHYSIOSIM_SUBJECT_SEX=female

    Raises:
        ConfigurationError: If an override produces an invalid configuration
    """
    overrides: Dict[str, Dict[str, Any]] = {}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key == ENV_CONFIG:
            continue

        parts = key[len(ENV_PREFIX):].lower().split("_", 1)
        if len(parts) != 2:
            continue

        section, field = parts
        overrides.setdefault(section, {})[field] = _convert_env_value(value)

    if not overrides:
        return config

    config_dict = config.model_dump()
    applied = []
    for section, fields in overrides.items():
        if isinstance(config_dict.get(section), dict):
            config_dict[section].update(fields)
            applied.extend(f"{section}.{name}" for name in fields)

    if not applied:
        return config

    try:
        config = AppConfig.model_validate(config_dict)
    except pydantic.ValidationError as e:
        raise ConfigurationError(
            f"Invalid environment override: {e}",
            {"overrides": applied, "errors": e.errors()},
        ) from e
    logger.debug("Environment overrides applied", overrides=applied)
    return config


def _convert_env_value(value: str) -> Any:
    """Convert string environment variable to appropriate type."""
    # Boolean
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    # String (default)
    return value
