"""Shared fixtures for watching tests."""

import types

import pytest
from tree_watcher.core import ITreeWalker
from tree_watcher.models import WalkEntry


@types.coroutine
def _pass_control():
    """Suspend once without going through asyncio.sleep, which some tests patch."""
    yield


class ScriptedWalker(ITreeWalker):
    """
    Tree walker that replays a scripted sequence of snapshots.

    Each call to ``walk`` consumes the next step; once the script runs out the
    last step repeats. A step that is an exception instance is raised instead.
    """

    def __init__(self, steps):
        self.steps = list(steps)
        self.calls = 0
        self.roots = []
        self.options = []

    async def walk(self, root, options):
        step = self.steps[min(self.calls, len(self.steps) - 1)]
        self.calls += 1
        self.roots.append(root)
        self.options.append(options)

        await _pass_control()
        if isinstance(step, BaseException):
            raise step

        yield WalkEntry(path=root, is_dir=True, modified=0)
        for path, modified in step.items():
            yield WalkEntry(path=path, is_file=True, modified=modified)


@pytest.fixture
def scripted_walker():
    """Factory for scripted walkers."""
    return ScriptedWalker
