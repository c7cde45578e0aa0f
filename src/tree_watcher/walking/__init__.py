"""Directory traversal used to build snapshots."""

from tree_watcher.walking.directory_walker import DirectoryWalker

__all__ = ["DirectoryWalker"]
