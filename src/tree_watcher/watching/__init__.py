"""
Watching package: snapshot collection, diffing and the polling loop.

``watch()`` yields batches of changes for a directory tree, ``files()`` takes
a single snapshot, and ``WatchCoordinator`` runs a watch in the background
with per-event callbacks.
"""

from tree_watcher.watching.differ import SnapshotDiff, difference
from tree_watcher.watching.snapshot import collect_snapshot, files
from tree_watcher.watching.stream import ChangeStream, watch
from tree_watcher.watching.watch_coordinator import WatchCoordinator
from tree_watcher.watching.watcher import Watcher, build_batch

__all__ = [
    "ChangeStream",
    "SnapshotDiff",
    "WatchCoordinator",
    "Watcher",
    "build_batch",
    "collect_snapshot",
    "difference",
    "files",
    "watch",
]
