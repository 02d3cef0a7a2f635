"""Configuration loader with validation."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..utils.timeparse import format_duration
from .models import TaskTreeConfig

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error."""

    pass


def default_config_path() -> Path:
    """Get the default config file path ($XDG_CONFIG_HOME/tasktree.yml)."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "tasktree.yml"
    return Path.home() / ".config" / "tasktree.yml"


def load_config(config_path: Path) -> TaskTreeConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated TaskTreeConfig instance

    Raises:
        ConfigError: If config file missing or invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if not data:
        raise ConfigError(f"Empty configuration file: {config_path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    # Resolve tasksets path relative to config file
    if "tasksets_path" in data:
        tasksets_path = Path(os.path.expanduser(str(data["tasksets_path"])))
        if not tasksets_path.is_absolute():
            tasksets_path = (config_path.parent / tasksets_path).resolve()
        data["tasksets_path"] = tasksets_path

    try:
        return TaskTreeConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}")


def load_config_or_default(config_path: Path) -> TaskTreeConfig:
    """Load configuration, falling back to defaults when the file is absent.

    Raises:
        ConfigError: If the file exists but is invalid
    """
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return TaskTreeConfig()
    return load_config(config_path)


def apply_overrides(config: TaskTreeConfig, **overrides: Any) -> TaskTreeConfig:
    """Return a copy of the config with command line overrides applied.

    ``None`` values are ignored. Pomodoro keys (``pomodoro_length``,
    ``short_break_length``, ``long_break_length``, ``long_break_after``)
    update the nested pomodoro section.

    Args:
        config: Base configuration
        **overrides: Top-level or pomodoro fields to replace

    Returns:
        New TaskTreeConfig
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    pomodoro_fields = set(type(config.pomodoro).model_fields)

    pomodoro_update = {k: values.pop(k) for k in list(values) if k in pomodoro_fields}
    unknown = set(values) - set(TaskTreeConfig.model_fields)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    data = config.model_dump()
    data.update(values)
    data["pomodoro"].update(pomodoro_update)

    try:
        return TaskTreeConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}")


def create_default_config(config_path: Path) -> None:
    """Create default configuration file.

    Args:
        config_path: Path where config should be created
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    defaults = TaskTreeConfig()
    default_config = {
        "tasksets_path": str(defaults.tasksets_path),
        "default_tasksets": list(defaults.default_tasksets),
        "pomodoro": {
            "pomodoro_length": format_duration(defaults.pomodoro.pomodoro_length),
            "short_break_length": format_duration(defaults.pomodoro.short_break_length),
            "long_break_length": format_duration(defaults.pomodoro.long_break_length),
            "long_break_after": defaults.pomodoro.long_break_after,
        },
        "logging": {
            "level": defaults.logging.level,
            "log_dir": None,
            "rotation_mb": defaults.logging.rotation_mb,
            "retention_days": defaults.logging.retention_days,
        },
    }

    with open(config_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
