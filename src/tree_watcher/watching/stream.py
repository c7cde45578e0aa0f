"""
Pull-based change sequence.

``watch()`` is the main entry point of the package:

    async for batch in watch("docs", {"interval": 1000}):
        for change in batch:
            print(change.event, change.path)
"""

import logging
import os
from collections.abc import Mapping

from tree_watcher.core.interfaces import ITreeWalker
from tree_watcher.models import ChangeBatch, WatchOptions
from tree_watcher.watching.watcher import Watcher

logger = logging.getLogger(__name__)


class ChangeStream:
    """
    Async iterator over the change batches of one watcher.

    The stream never ends on its own and cannot be restarted: iterating it
    again continues where the previous loop stopped. Start over with a new
    stream. To stop, break out of the loop or cancel the task awaiting it.
    """

    def __init__(self, watcher: Watcher):
        self.watcher = watcher

    def __aiter__(self) -> "ChangeStream":
        return self

    async def __anext__(self) -> ChangeBatch:
        return await self.watcher.advance()


def watch(
    target: str | os.PathLike,
    options: WatchOptions | Mapping | None = None,
    walker: ITreeWalker | None = None,
) -> ChangeStream:
    """
    Watch a directory tree for file changes.

    Args:
        target: Directory tree to poll
        options: Watch options (interval, initial snapshot, traversal options)
        walker: Tree walker used to collect snapshots

    Returns:
        A stream of non-empty change batches

    Raises:
        ConfigurationError: If the options are invalid
    """
    watcher = Watcher(target, options, walker)
    logger.debug("Watching %s every %dms", watcher.target, watcher.options.interval)
    return ChangeStream(watcher)
