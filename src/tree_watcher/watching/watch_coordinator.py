"""
Background watch coordinator.

Runs a change stream in an asyncio task and dispatches every change to
per-event callbacks, keeping statistics about processed events and failures.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from tree_watcher.config import WatcherSettings, get_config
from tree_watcher.core.interfaces import ITreeWalker
from tree_watcher.models import Change, ChangeEvent, MonitoringError
from tree_watcher.watching.stream import ChangeStream, watch

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Path], Any]


class WatchCoordinator:
    """
    Drives a polling watch in the background.

    Callbacks receive the affected path and may be plain functions or
    coroutines. A failing callback is logged and counted but does not stop
    the watch; a failing scan ends it and is reported by ``stop_watching``
    and ``wait``.
    """

    def __init__(
        self,
        config: WatcherSettings | None = None,
        on_file_created: ChangeCallback | None = None,
        on_file_removed: ChangeCallback | None = None,
        on_file_changed: ChangeCallback | None = None,
        walker: ITreeWalker | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config: Watcher settings (uses the global settings if not provided)
            on_file_created: Callback for created files
            on_file_removed: Callback for removed files
            on_file_changed: Callback for modified files
            walker: Tree walker passed on to the watcher
        """
        self.config = config or get_config()
        self.walker = walker
        self._callbacks: dict[ChangeEvent, ChangeCallback | None] = {
            ChangeEvent.CREATED: on_file_created,
            ChangeEvent.REMOVED: on_file_removed,
            ChangeEvent.CHANGED: on_file_changed,
        }

        self._stream: ChangeStream | None = None
        self._task: asyncio.Task | None = None
        self._target: Path | None = None
        self.last_error: BaseException | None = None

        self._stats = {
            "batches_processed": 0,
            "operations": {"created": 0, "removed": 0, "changed": 0, "failed": 0},
            "errors": [],
        }

    async def start_watching(self, directory_path: Path, options: Mapping[str, Any] | None = None) -> None:
        """
        Start polling a directory in the background.

        Args:
            directory_path: Directory to watch
            options: Watch option overrides on top of the configured defaults

        Raises:
            MonitoringError: If already watching, or the directory is unusable
        """
        if self.is_watching:
            raise MonitoringError(
                f"Already watching {self._target}", path=str(directory_path), operation="start_watching"
            )

        if not directory_path.exists():
            raise MonitoringError(
                f"Directory does not exist: {directory_path}", path=str(directory_path), operation="start_watching"
            )

        if not directory_path.is_dir():
            raise MonitoringError(
                f"Path is not a directory: {directory_path}", path=str(directory_path), operation="start_watching"
            )

        try:
            watch_options = self.config.get_watch_options(**dict(options or {}))
            self._stream = watch(directory_path, watch_options, self.walker)
        except Exception as e:
            logger.error("Failed to start watching %s: %s", directory_path, e)
            raise MonitoringError(
                f"Failed to start watching: {e}",
                path=str(directory_path),
                operation="start_watching",
                underlying_error=e,
            ) from e

        self._target = directory_path
        self.last_error = None
        self._task = asyncio.create_task(self._run(self._stream), name=f"tree-watch:{directory_path}")
        self._task.add_done_callback(self._on_task_done)
        logger.info(
            "Started watching %s (interval: %dms)", directory_path, self._stream.watcher.options.interval
        )

    async def stop_watching(self) -> None:
        """
        Stop the background watch.

        Raises:
            MonitoringError: If the watch had already ended with a scan failure
        """
        if self._task is None:
            logger.debug("Watch not active, nothing to stop")
            return

        task, self._task = self._task, None
        if not task.done():
            task.cancel()

        try:
            await task
        except asyncio.CancelledError:
            logger.info("Stopped watching %s", self._target)
        except Exception as e:
            raise MonitoringError(
                f"Watch failed: {e}", path=str(self._target), operation="stop_watching", underlying_error=e
            ) from e

    async def wait(self) -> None:
        """
        Wait for the background watch to end.

        A watch only ends by itself when a scan fails.

        Raises:
            MonitoringError: If the watch ended with a scan failure
        """
        task = self._task
        if task is None:
            return

        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        except Exception as e:
            raise MonitoringError(
                f"Watch failed: {e}", path=str(self._target), operation="wait", underlying_error=e
            ) from e

    async def _run(self, stream: ChangeStream) -> None:
        try:
            async for batch in stream:
                for change in batch:
                    await self._dispatch_change(change)
                self._stats["batches_processed"] += 1
        except Exception as e:
            self.last_error = e
            logger.error("Watch of %s failed: %s", self._target, e)
            raise

    @staticmethod
    def _on_task_done(task: asyncio.Task) -> None:
        # Mark the failure retrieved; wait/stop_watching re-raise it.
        if not task.cancelled():
            task.exception()

    async def _dispatch_change(self, change: Change) -> None:
        """
        Dispatch a change to the matching callback.

        Args:
            change: Change to process
        """
        callback = self._callbacks.get(change.event)
        if callback is None:
            return

        file_path = Path(change.path)
        try:
            logger.debug("Processing %s event for %s", change.event.value, file_path)
            result = callback(file_path)
            if inspect.isawaitable(result):
                await result
            self._stats["operations"][change.event.value] += 1
        except Exception as e:
            logger.error("Error handling %s event for %s: %s", change.event.value, file_path, e)
            self._stats["operations"]["failed"] += 1
            self._stats["errors"].append(f"{file_path} ({change.event.value}): {e}")

            # Keep only the last 100 errors
            if len(self._stats["errors"]) > 100:
                self._stats["errors"] = self._stats["errors"][-100:]

    @property
    def is_watching(self) -> bool:
        """Check if a background watch is running."""
        return self._task is not None and not self._task.done()

    def get_monitoring_stats(self) -> dict[str, Any]:
        """
        Get monitoring statistics.

        Returns:
            Dictionary with dispatch counts, recent errors and polling statistics
        """
        return {
            "watching": self.is_watching,
            "target": str(self._target) if self._target else None,
            "processing_stats": {
                "batches_processed": self._stats["batches_processed"],
                "operations": self._stats["operations"].copy(),
                "errors": list(self._stats["errors"]),
            },
            "watcher_stats": self._stream.watcher.get_watch_stats() if self._stream else None,
            "last_error": str(self.last_error) if self.last_error else None,
        }
