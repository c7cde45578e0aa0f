"""Snapshot comparison."""

from typing import NamedTuple

from tree_watcher.models import Snapshot


class SnapshotDiff(NamedTuple):
    """Paths that appeared, disappeared or changed between two snapshots."""

    created: Snapshot
    removed: Snapshot
    changed: Snapshot

    def __bool__(self) -> bool:
        return bool(self.created or self.removed or self.changed)


def difference(old: Snapshot, new: Snapshot) -> SnapshotDiff:
    """
    Compare two snapshots by key presence and timestamp equality.

    ``created`` and ``changed`` carry the new timestamps, ``removed`` the old
    ones. Neither input is modified. A timestamp of 0 is an ordinary value.
    """
    created: Snapshot = {}
    removed: Snapshot = {}
    changed: Snapshot = {}

    for path, modified in old.items():
        if path not in new:
            removed[path] = modified
        elif new[path] != modified:
            changed[path] = new[path]

    for path, modified in new.items():
        if path not in old:
            created[path] = modified

    return SnapshotDiff(created, removed, changed)
