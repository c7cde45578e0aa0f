"""Core abstractions shared by the walking and watching packages."""

from tree_watcher.core.interfaces import ITreeWalker

__all__ = ["ITreeWalker"]
