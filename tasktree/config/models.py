"""Configuration models for tasktree."""

import os
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.timeparse import parse_duration


def default_tasksets_path() -> Path:
    """Get the platform default directory holding taskset files."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA", "C:\\Users\\Default")
        return Path(base) / "Documents" / "tasktree"
    if sys.platform == "darwin":
        return Path(os.environ.get("HOME", "/Users/Default")) / "Documents" / "tasktree"
    documents = os.environ.get("XDG_DOCUMENTS_DIR")
    if not documents:
        documents = os.path.join(os.environ.get("HOME", "."), "Documents")
    return Path(documents) / "tasktree"


class PomodoroConfig(BaseModel):
    """Pomodoro timer settings."""

    model_config = ConfigDict(frozen=True)

    pomodoro_length: timedelta = Field(
        default=timedelta(minutes=20), description="Length of a pomodoro session"
    )
    short_break_length: timedelta = Field(
        default=timedelta(minutes=5), description="Length of a short break"
    )
    long_break_length: timedelta = Field(
        default=timedelta(minutes=15), description="Length of a long break"
    )
    long_break_after: int = Field(
        default=4, ge=1, description="Pomodoros before a long break"
    )

    @field_validator(
        "pomodoro_length", "short_break_length", "long_break_length", mode="before"
    )
    @classmethod
    def _parse_duration(cls, value):
        if isinstance(value, str) and not value.upper().startswith("P"):
            return parse_duration(value)
        return value


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="WARNING", description="Log level")
    log_dir: Optional[Path] = Field(default=None, description="Log directory (no file logs if unset)")
    rotation_mb: int = Field(default=10, description="Log rotation size (MB)")
    retention_days: int = Field(default=7, description="Log retention days")


class TaskTreeConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(frozen=True)

    tasksets_path: Path = Field(
        default_factory=default_tasksets_path,
        description="Directory containing taskset files",
    )
    default_tasksets: list[str] = Field(
        default_factory=lambda: ["default"],
        description="Tasksets used when none are selected",
    )
    pomodoro: PomodoroConfig = Field(default_factory=PomodoroConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
