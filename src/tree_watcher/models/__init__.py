"""Data models, option schemas and exceptions for the tree watcher."""

from tree_watcher.models.change import Change, ChangeBatch, ChangeEvent, Snapshot, WalkEntry
from tree_watcher.models.exceptions import BaseError, ConfigurationError, MonitoringError
from tree_watcher.models.options import DEFAULT_INTERVAL_MS, WalkOptions, WatchOptions, coerce_options

__all__ = [
    "Change",
    "ChangeBatch",
    "ChangeEvent",
    "Snapshot",
    "WalkEntry",
    "WalkOptions",
    "WatchOptions",
    "DEFAULT_INTERVAL_MS",
    "coerce_options",
    "BaseError",
    "ConfigurationError",
    "MonitoringError",
]
