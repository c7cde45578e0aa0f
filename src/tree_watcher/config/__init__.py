"""Configuration management and settings."""

from tree_watcher.config.settings import LogLevel, WatcherSettings, get_config, reload_config, set_config

__all__ = ["WatcherSettings", "LogLevel", "get_config", "reload_config", "set_config"]
