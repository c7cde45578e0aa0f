"""
Polling watcher for directory trees.

Each cycle snapshots the target, diffs it against the previous snapshot and
pads itself to the configured interval. Cycles that find nothing are repeated
internally, so callers only ever receive non-empty change batches.
"""

import asyncio
import logging
import os
import time
from collections.abc import Mapping
from typing import Any

from tree_watcher.core.interfaces import ITreeWalker
from tree_watcher.models import Change, ChangeBatch, ChangeEvent, Snapshot, WatchOptions, coerce_options
from tree_watcher.walking import DirectoryWalker
from tree_watcher.watching.differ import SnapshotDiff, difference
from tree_watcher.watching.snapshot import collect_snapshot

logger = logging.getLogger(__name__)


def build_batch(diff: SnapshotDiff) -> ChangeBatch:
    """Turn a snapshot diff into changes: created, then removed, then changed."""
    batch: ChangeBatch = [Change(path=path, event=ChangeEvent.CREATED) for path in diff.created]
    batch.extend(Change(path=path, event=ChangeEvent.REMOVED) for path in diff.removed)
    batch.extend(Change(path=path, event=ChangeEvent.CHANGED) for path in diff.changed)
    return batch


class Watcher:
    """
    Polls a directory tree and reports file changes in batches.

    The watcher is its own async iterator: every ``__anext__`` waits for the
    next non-empty batch. It is not safe to call ``advance`` from several
    tasks at once; serialize access or consume it through a single
    ``ChangeStream``.
    """

    def __init__(
        self,
        target: str | os.PathLike,
        options: WatchOptions | Mapping | None = None,
        walker: ITreeWalker | None = None,
    ):
        """
        Initialize the watcher.

        Args:
            target: Directory tree to poll
            options: Watch options (interval, initial snapshot, traversal options)
            walker: Tree walker used to collect snapshots (defaults to ``DirectoryWalker``)

        Raises:
            ConfigurationError: If the options are invalid
        """
        self.target = os.fspath(target)
        self.options = coerce_options(WatchOptions, options)
        self.files: Snapshot = dict(self.options.files)
        self.walker = walker or DirectoryWalker()

        self._walk_options = self.options.walk_options()
        self._stats = {
            "cycles": 0,
            "empty_cycles": 0,
            "batches": 0,
            "changes": {event.value: 0 for event in ChangeEvent},
            "last_cycle_ms": None,
        }

    def __aiter__(self) -> "Watcher":
        return self

    async def __anext__(self) -> ChangeBatch:
        return await self.advance()

    async def advance(self) -> ChangeBatch:
        """
        Poll until a cycle produces changes and return them.

        Returns:
            Non-empty batch of changes, created first, then removed, then changed

        Raises:
            OSError: If the tree cannot be traversed; the stored snapshot is left as it was
        """
        interval = self.options.interval / 1000

        while True:
            start = time.monotonic()

            try:
                snapshot = await collect_snapshot(self.target, self._walk_options, self.walker)
            except OSError as e:
                logger.error("Failed to scan %s: %s", self.target, e)
                raise

            diff = difference(self.files, snapshot)
            batch = build_batch(diff)
            self.files = snapshot

            elapsed = time.monotonic() - start
            self._record_cycle(batch, elapsed)

            wait = interval - elapsed
            if wait > 0:
                logger.debug("Cycle took %.1fms, sleeping %.1fms", elapsed * 1000, wait * 1000)
                await asyncio.sleep(wait)
            else:
                # let other tasks run between back-to-back cycles
                await asyncio.sleep(0)

            if batch:
                logger.info(
                    "Detected changes in %s: %d created, %d removed, %d changed",
                    self.target,
                    len(diff.created),
                    len(diff.removed),
                    len(diff.changed),
                )
                return batch

            logger.debug("No changes in %s", self.target)

    def _record_cycle(self, batch: ChangeBatch, elapsed: float) -> None:
        self._stats["cycles"] += 1
        self._stats["last_cycle_ms"] = elapsed * 1000
        if not batch:
            self._stats["empty_cycles"] += 1
            return

        self._stats["batches"] += 1
        for change in batch:
            self._stats["changes"][change.event.value] += 1

    @property
    def tracked_files(self) -> int:
        """Number of files in the stored snapshot."""
        return len(self.files)

    def get_watch_stats(self) -> dict[str, Any]:
        """
        Get polling statistics.

        Returns:
            Dictionary with cycle counts, per-event change counts and timing
        """
        return {
            "target": self.target,
            "interval_ms": self.options.interval,
            "tracked_files": self.tracked_files,
            "cycles": self._stats["cycles"],
            "empty_cycles": self._stats["empty_cycles"],
            "batches": self._stats["batches"],
            "changes": self._stats["changes"].copy(),
            "last_cycle_ms": self._stats["last_cycle_ms"],
        }
