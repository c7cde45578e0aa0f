"""
Asynchronous directory tree walker.

Lists directories with ``os.scandir`` in a worker thread so the event loop
stays responsive while large trees are scanned, and applies depth, extension
and pattern filters as it goes.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator

from tree_watcher.core.interfaces import ITreeWalker
from tree_watcher.models import WalkEntry, WalkOptions

logger = logging.getLogger(__name__)


def _mtime_ms(stat_result: os.stat_result) -> int:
    return stat_result.st_mtime_ns // 1_000_000


class DirectoryWalker(ITreeWalker):
    """
    Default tree walker backed by the local filesystem.

    The root is yielded first (when directories are included), followed by
    its descendants depth-first. Symbolic links are skipped unless
    ``follow_symlinks`` is set, in which case they are classified by their
    target and directory cycles are cut.
    """

    async def walk(self, root: str, options: WalkOptions) -> AsyncIterator[WalkEntry]:
        root = os.fspath(root)
        max_depth = options.max_depth
        visited: set[str] = set()

        async for entry in self._walk(root, max_depth, options, visited):
            yield entry

    async def _walk(
        self,
        path: str,
        max_depth: int | None,
        options: WalkOptions,
        visited: set[str],
        listed: WalkEntry | None = None,
    ) -> AsyncIterator[WalkEntry]:
        """
        Walk one directory.

        ``listed`` is the entry the parent listing produced for ``path``; it
        is None only for the root. A directory that disappears after its
        parent was listed is skipped, while errors on the root propagate.
        """
        if max_depth is not None and max_depth < 0:
            return

        if options.include_dirs and self._include(path, options, check_filters=True):
            if listed is None:
                stat_result = await asyncio.to_thread(os.stat, path)
                listed = WalkEntry(path=path, is_dir=True, modified=_mtime_ms(stat_result))
            yield listed

        if max_depth is not None and max_depth < 1:
            return
        if not self._include(path, options, check_filters=False):
            return

        if options.follow_symlinks:
            real_path = await asyncio.to_thread(os.path.realpath, path)
            if real_path in visited:
                logger.debug("Skipping already visited directory %s (%s)", path, real_path)
                return
            visited.add(real_path)

        try:
            children = await asyncio.to_thread(self._list_directory, path, options.follow_symlinks)
        except FileNotFoundError:
            if listed is None:
                raise
            logger.debug("Directory %s vanished during the scan, skipping it", path)
            return
        logger.debug("Listed %d entries in %s", len(children), path)

        child_depth = None if max_depth is None else max_depth - 1
        for child in children:
            if child.is_file:
                if options.include_files and self._include(child.path, options, check_filters=True):
                    yield child
            elif child.is_dir:
                async for entry in self._walk(child.path, child_depth, options, visited, child):
                    yield entry

    @staticmethod
    def _list_directory(path: str, follow_symlinks: bool) -> list[WalkEntry]:
        """
        List one directory, classifying and stamping every child.

        Unfollowed symbolic links, dangling links and entries that vanish
        between listing and ``stat`` are left out. Errors reading ``path``
        itself propagate.
        """
        children = []
        with os.scandir(path) as iterator:
            for dir_entry in iterator:
                is_symlink = dir_entry.is_symlink()
                if is_symlink and not follow_symlinks:
                    continue

                is_file = dir_entry.is_file(follow_symlinks=follow_symlinks)
                is_dir = not is_file and dir_entry.is_dir(follow_symlinks=follow_symlinks)
                if not (is_file or is_dir):
                    continue

                try:
                    stat_result = dir_entry.stat(follow_symlinks=follow_symlinks)
                except FileNotFoundError:
                    continue

                children.append(
                    WalkEntry(
                        path=os.path.join(path, dir_entry.name),
                        is_file=is_file,
                        is_dir=is_dir,
                        is_symlink=is_symlink,
                        modified=_mtime_ms(stat_result),
                    )
                )
        return children

    @staticmethod
    def _include(path: str, options: WalkOptions, check_filters: bool) -> bool:
        """
        Check a path against the walk filters.

        ``skip`` always applies; ``exts`` and ``match`` only decide whether a
        path is yielded, never whether a directory is descended into.
        """
        if check_filters:
            if options.exts and not any(path.endswith(ext) for ext in options.exts):
                return False
            if options.match and not any(pattern.search(path) for pattern in options.match):
                return False
        if options.skip and any(pattern.search(path) for pattern in options.skip):
            return False
        return True
