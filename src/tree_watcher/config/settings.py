"""
Configuration management for the tree watcher.

Handles environment variables and ``.env`` files, and provides validated
defaults for background watches and logging.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tree_watcher.models.options import DEFAULT_INTERVAL_MS


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class WatcherSettings(BaseSettings):
    """
    Application-level settings for the tree watcher.

    The library functions (``watch``, ``files``) take explicit options and
    never read these settings; ``WatchCoordinator`` and the demo use them to
    fill in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TREE_WATCHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # === Polling Configuration ===
    default_interval_ms: int = Field(
        default=DEFAULT_INTERVAL_MS, ge=0, le=3_600_000, description="Minimum spacing between polling cycles"
    )
    follow_symlinks: bool = Field(default=False, description="Follow symbolic links while scanning")
    max_depth: int | None = Field(default=None, ge=0, description="Maximum scan depth (None for unbounded)")
    ignored_patterns: list[str] = Field(
        default=[r"(^|/)\.git(/|$)", r"\.swp$", r"\.tmp$", r"(^|/)\.DS_Store$"],
        description="Regular expressions for paths to skip while scanning",
    )

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    @field_validator('ignored_patterns')
    @classmethod
    def validate_ignored_patterns(cls, v):
        """Ensure every ignore pattern is a valid regular expression."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid ignore pattern {pattern!r}: {e}") from e
        return v

    def get_watch_options(self, **overrides: Any) -> dict[str, Any]:
        """Get watch options derived from these settings, with per-call overrides."""
        options = {
            "interval": self.default_interval_ms,
            "follow_symlinks": self.follow_symlinks,
            "max_depth": self.max_depth,
            "skip": list(self.ignored_patterns),
        }
        options.update(overrides)
        return options

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary for ``logging.config.dictConfig``."""
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": self.log_level.value,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {"tree_watcher": {"handlers": ["default"], "level": self.log_level.value, "propagate": False}},
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config


# Global configuration instance
_config: WatcherSettings | None = None


def get_config() -> WatcherSettings:
    """
    Get the global settings instance.

    Creates a new instance on first call and reuses it for subsequent calls.
    """
    global _config
    if _config is None:
        _config = WatcherSettings()
    return _config


def reload_config() -> WatcherSettings:
    """Force reload the settings from environment/files."""
    global _config
    _config = WatcherSettings()
    return _config


def set_config(config: WatcherSettings) -> None:
    """
    Set a custom settings instance.

    Primarily used for testing or embedding the watcher in a larger application.
    """
    global _config
    _config = config
