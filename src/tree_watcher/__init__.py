"""Polling directory watcher that reports file changes as async batches."""

from tree_watcher.models import (
    BaseError,
    Change,
    ChangeBatch,
    ChangeEvent,
    ConfigurationError,
    MonitoringError,
    Snapshot,
    WalkEntry,
    WalkOptions,
    WatchOptions,
)
from tree_watcher.walking import DirectoryWalker
from tree_watcher.watching import (
    ChangeStream,
    SnapshotDiff,
    WatchCoordinator,
    Watcher,
    difference,
    files,
    watch,
)

__version__ = "0.1.0"

__all__ = [
    "BaseError",
    "Change",
    "ChangeBatch",
    "ChangeEvent",
    "ChangeStream",
    "ConfigurationError",
    "DirectoryWalker",
    "MonitoringError",
    "Snapshot",
    "SnapshotDiff",
    "WalkEntry",
    "WalkOptions",
    "WatchCoordinator",
    "WatchOptions",
    "Watcher",
    "difference",
    "files",
    "watch",
]
