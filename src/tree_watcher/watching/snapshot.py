"""
Tree snapshot collection.

A snapshot records the last-modified time of every regular file a walker
yields under a root; directories and other entry kinds are left out.
"""

import logging
import os
from collections.abc import Mapping

from tree_watcher.core.interfaces import ITreeWalker
from tree_watcher.models import Snapshot, WalkOptions, coerce_options
from tree_watcher.walking import DirectoryWalker

logger = logging.getLogger(__name__)


async def collect_snapshot(root: str | os.PathLike, options: WalkOptions, walker: ITreeWalker) -> Snapshot:
    """
    Walk ``root`` and record the modification time of each regular file.

    Entries are stored in the order the walker yields them. Traversal errors
    propagate to the caller untouched.
    """
    snapshot: Snapshot = {}

    async for entry in walker.walk(os.fspath(root), options):
        if entry.is_file:
            snapshot[entry.path] = entry.modified

    logger.debug("Collected snapshot of %s: %d files", root, len(snapshot))
    return snapshot


async def files(
    path: str | os.PathLike,
    options: WalkOptions | Mapping | None = None,
    walker: ITreeWalker | None = None,
) -> Snapshot:
    """
    Take a single snapshot of a directory tree without polling.

    Args:
        path: Root directory to scan
        options: Traversal options as a model or plain mapping
        walker: Tree walker to use (defaults to ``DirectoryWalker``)

    Returns:
        Mapping from file path to last-modified time in epoch milliseconds

    Raises:
        ConfigurationError: If the options are invalid
        OSError: If the tree cannot be traversed
    """
    walk_options = coerce_options(WalkOptions, options)
    return await collect_snapshot(path, walk_options, walker or DirectoryWalker())
