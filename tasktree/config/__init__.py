from .loader import ConfigError, apply_overrides, load_config, load_config_or_default
from .models import LoggingConfig, PomodoroConfig, TaskTreeConfig

__all__ = [
    "ConfigError",
    "LoggingConfig",
    "PomodoroConfig",
    "TaskTreeConfig",
    "apply_overrides",
    "load_config",
    "load_config_or_default",
]
