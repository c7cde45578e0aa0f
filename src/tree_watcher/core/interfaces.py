"""
Abstract interfaces for the tree watcher.

These interfaces define the contracts for pluggable components, enabling
dependency injection for testing and alternative traversal strategies.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from tree_watcher.models import WalkEntry, WalkOptions


class ITreeWalker(ABC):
    """Interface for walking a directory tree."""

    @abstractmethod
    def walk(self, root: str, options: WalkOptions) -> AsyncIterator[WalkEntry]:
        """
        Lazily walk the tree under ``root``.

        Args:
            root: Directory to start from
            options: Traversal options (depth, filters, symlink handling)

        Returns:
            Async iterator of entries, each carrying its path, kind and
            last-modified time

        Raises:
            OSError: If the root or a directory below it cannot be read
        """
        pass
