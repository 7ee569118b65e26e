"""
TASKTREE - Settings
===================
Where the tasks document, project config and backups live.

Loading priority (highest first):
    1. Explicit keyword arguments (CLI flags)
    2. Environment variables (TASKTREE_* prefix)
    3. .env file
    4. Defaults
"""

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskTreeSettings(BaseSettings):
    """Project layout settings; relative paths resolve against project_root"""

    model_config = SettingsConfigDict(
        env_prefix="TASKTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_root: Path = Field(default=Path("."))
    tasks_file: Path = Field(default=Path(".taskmaster/tasks/tasks.json"))
    config_file: Path = Field(default=Path(".taskmaster/config.json"))
    backup_dir: Path = Field(default=Path(".taskmaster/backups"))
    log_level: str = Field(default="INFO")

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.project_root / path

    @property
    def tasks_path(self) -> Path:
        return self._resolve(self.tasks_file)

    @property
    def config_path(self) -> Path:
        return self._resolve(self.config_file)

    @property
    def backup_path(self) -> Path:
        return self._resolve(self.backup_dir)

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO
