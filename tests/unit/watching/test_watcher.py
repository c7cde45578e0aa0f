"""Unit tests for the polling watcher."""

import os
import time
from unittest.mock import AsyncMock, patch

import pytest
from tree_watcher.models import Change, ChangeEvent, ConfigurationError, WatchOptions
from tree_watcher.watching import Watcher, build_batch, difference


def touch(path, mtime_ms):
    """Create or rewrite a file with an exact modification time."""
    path.write_text("x")
    ns = mtime_ms * 1_000_000
    os.utime(path, ns=(ns, ns))
    return str(path)


class TestWatcherConstruction:
    """Test cases for watcher construction and option handling."""

    def test_defaults(self, tmp_path):
        """Test default interval and empty initial snapshot."""
        watcher = Watcher(tmp_path)

        assert watcher.target == str(tmp_path)
        assert watcher.options.interval == 500
        assert watcher.files == {}
        assert watcher.tracked_files == 0

    def test_default_snapshots_not_shared(self, tmp_path):
        """Test that watchers built with defaults never share their snapshot."""
        first = Watcher(tmp_path)
        second = Watcher(tmp_path)

        first.files["x"] = 1

        assert second.files == {}
        assert first.options.files is not second.options.files

    def test_initial_snapshot_copied(self, tmp_path):
        """Test that the caller's initial snapshot is copied, not aliased."""
        initial = {"a": 1}
        watcher = Watcher(tmp_path, {"files": initial, "interval": 0})

        watcher.files["b"] = 2

        assert initial == {"a": 1}
        assert watcher.options.interval == 0

    def test_options_model_accepted(self, tmp_path):
        """Test passing a WatchOptions instance."""
        options = WatchOptions(interval=10, max_depth=1)

        watcher = Watcher(tmp_path, options)

        assert watcher.options is options

    @pytest.mark.parametrize(
        "options,key",
        [
            ({"interval": -1}, "interval"),
            ({"interval": "soon"}, "interval"),
            ({"files": {"a": "yesterday"}}, "files.a"),
            ({"skip": ["("]}, "skip.0"),
            ({"recursive": True}, "recursive"),
        ],
    )
    def test_invalid_options(self, tmp_path, options, key):
        """Test that invalid options raise ConfigurationError at construction."""
        with pytest.raises(ConfigurationError) as exc_info:
            Watcher(tmp_path, options)

        assert exc_info.value.error_code == "CONFIG_ERROR"
        assert exc_info.value.context["config_key"] == key
        assert exc_info.value.cause is not None

    def test_options_wrong_type(self, tmp_path):
        """Test that non-mapping options are rejected."""
        with pytest.raises(ConfigurationError):
            Watcher(tmp_path, ["interval", 5])


class TestBuildBatch:
    """Test cases for batch construction."""

    def test_grouped_by_event(self):
        """Test that batches list created, then removed, then changed."""
        diff = difference({"gone": 1, "edit": 1, "same": 1}, {"edit": 2, "same": 1, "new1": 1, "new2": 1})

        batch = build_batch(diff)

        assert batch == [
            Change(path="new1", event=ChangeEvent.CREATED),
            Change(path="new2", event=ChangeEvent.CREATED),
            Change(path="gone", event=ChangeEvent.REMOVED),
            Change(path="edit", event=ChangeEvent.CHANGED),
        ]

    def test_empty_diff(self):
        """Test that an empty diff gives an empty batch."""
        assert build_batch(difference({"a": 1}, {"a": 1})) == []


class TestWatcherScenarios:
    """Filesystem scenarios against a real directory."""

    @pytest.mark.asyncio
    async def test_file_created(self, tmp_path):
        """Test that a new file is reported as created."""
        a = touch(tmp_path / "a", 1)
        watcher = Watcher(tmp_path, {"interval": 0, "files": {a: 1}})
        b = touch(tmp_path / "b", 2)

        batch = await watcher.advance()

        assert batch == [Change(path=b, event=ChangeEvent.CREATED)]
        assert watcher.files == {a: 1, b: 2}

    @pytest.mark.asyncio
    async def test_file_removed(self, tmp_path):
        """Test that a deleted file is reported as removed."""
        a = touch(tmp_path / "a", 1)
        watcher = Watcher(tmp_path, {"interval": 0, "files": {a: 1}})
        os.remove(a)

        batch = await watcher.advance()

        assert batch == [Change(path=a, event=ChangeEvent.REMOVED)]
        assert watcher.files == {}

    @pytest.mark.asyncio
    async def test_file_changed(self, tmp_path):
        """Test that a rewritten file is reported as changed."""
        a = touch(tmp_path / "a", 1)
        watcher = Watcher(tmp_path, {"interval": 0, "files": {a: 1}})
        touch(tmp_path / "a", 5)

        batch = await watcher.advance()

        assert batch == [Change(path=a, event=ChangeEvent.CHANGED)]
        assert watcher.files == {a: 5}

    @pytest.mark.asyncio
    async def test_created_listed_before_removed(self, tmp_path):
        """Test that created entries precede removed ones whatever the scan order."""
        a = touch(tmp_path / "a", 1)
        watcher = Watcher(tmp_path, {"interval": 0, "files": {a: 1}})
        os.remove(a)
        z = touch(tmp_path / "z", 2)
        b = touch(tmp_path / "b", 3)

        batch = await watcher.advance()

        assert [change.event for change in batch] == [
            ChangeEvent.CREATED,
            ChangeEvent.CREATED,
            ChangeEvent.REMOVED,
        ]
        assert {change.path for change in batch[:2]} == {z, b}
        assert batch[2] == Change(path=a, event=ChangeEvent.REMOVED)

    @pytest.mark.asyncio
    async def test_first_cycle_reports_existing_files(self, tmp_path):
        """Test that with no initial snapshot every existing file is created."""
        a = touch(tmp_path / "a", 1)

        batch = await Watcher(tmp_path, {"interval": 0}).advance()

        assert batch == [Change(path=a, event=ChangeEvent.CREATED)]

    @pytest.mark.asyncio
    async def test_missing_target(self, tmp_path):
        """Test that a missing target fails the cycle."""
        watcher = Watcher(tmp_path / "missing", {"interval": 0})

        with pytest.raises(FileNotFoundError):
            await watcher.advance()


class TestWatcherCycles:
    """Cycle behaviour with a scripted walker."""

    @pytest.mark.asyncio
    async def test_empty_cycles_skipped(self, scripted_walker):
        """Test that quiescent cycles are never surfaced to the caller."""
        quiet = {"a": 1}
        walker = scripted_walker([quiet, quiet, quiet, quiet, {"a": 1, "b": 2}])
        watcher = Watcher("root", {"interval": 0, "files": quiet}, walker)

        batch = await watcher.advance()

        assert batch == [Change(path="b", event=ChangeEvent.CREATED)]
        assert walker.calls == 5
        stats = watcher.get_watch_stats()
        assert stats["cycles"] == 5
        assert stats["empty_cycles"] == 4
        assert stats["batches"] == 1

    @pytest.mark.asyncio
    async def test_unchanged_cycle_keeps_snapshot(self, scripted_walker):
        """Test that an untouched tree leaves the stored snapshot equal by value."""
        walker = scripted_walker([{"a": 1}, {"a": 1}, {"a": 1, "b": 2}])
        watcher = Watcher("root", {"interval": 0}, walker)

        await watcher.advance()
        before = dict(watcher.files)
        batch = await watcher.advance()

        assert before == {"a": 1}
        assert batch == [Change(path="b", event=ChangeEvent.CREATED)]
        assert watcher.get_watch_stats()["empty_cycles"] == 1

    @pytest.mark.asyncio
    async def test_change_not_reported_twice(self, scripted_walker):
        """Test that each cycle diffs against the latest snapshot."""
        walker = scripted_walker([{"a": 1}, {"a": 2}, {"a": 2}, {"a": 2}, {}])
        watcher = Watcher("root", {"interval": 0}, walker)

        first = await watcher.advance()
        second = await watcher.advance()
        third = await watcher.advance()

        assert first == [Change(path="a", event=ChangeEvent.CREATED)]
        assert second == [Change(path="a", event=ChangeEvent.CHANGED)]
        assert third == [Change(path="a", event=ChangeEvent.REMOVED)]

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot(self, scripted_walker):
        """Test that a failed scan propagates and leaves the snapshot intact."""
        walker = scripted_walker([{"a": 1}, PermissionError("denied"), {"a": 1, "b": 2}])
        watcher = Watcher("root", {"interval": 0}, walker)

        await watcher.advance()
        with pytest.raises(PermissionError):
            await watcher.advance()

        assert watcher.files == {"a": 1}

        batch = await watcher.advance()
        assert batch == [Change(path="b", event=ChangeEvent.CREATED)]

    @pytest.mark.asyncio
    async def test_walk_options_forwarded(self, scripted_walker):
        """Test that traversal options reach the walker without watch-only fields."""
        walker = scripted_walker([{"a": 1}])
        watcher = Watcher("root", {"interval": 0, "max_depth": 3, "exts": [".py"]}, walker)

        await watcher.advance()

        walk_options = walker.options[0]
        assert walk_options.max_depth == 3
        assert walk_options.exts == [".py"]
        assert not hasattr(walk_options, "interval")

    @pytest.mark.asyncio
    async def test_async_iteration(self, scripted_walker):
        """Test that the watcher is its own async iterator."""
        walker = scripted_walker([{"a": 1}, {"a": 1, "b": 1}])
        watcher = Watcher("root", {"interval": 0}, walker)

        assert aiter(watcher) is watcher
        batches = [await anext(watcher), await anext(watcher)]

        assert batches == [
            [Change(path="a", event=ChangeEvent.CREATED)],
            [Change(path="b", event=ChangeEvent.CREATED)],
        ]


class TestWatcherInterval:
    """Interval padding behaviour."""

    @pytest.mark.asyncio
    async def test_pads_to_interval(self, scripted_walker):
        """Test that a fast cycle sleeps for the rest of the interval."""
        walker = scripted_walker([{"a": 1}])
        watcher = Watcher("root", {"interval": 200}, walker)

        with patch("tree_watcher.watching.watcher.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await watcher.advance()

        mock_sleep.assert_called_once()
        wait = mock_sleep.call_args.args[0]
        assert 0 < wait <= 0.2

    @pytest.mark.asyncio
    async def test_no_padding_for_slow_cycles(self, scripted_walker):
        """Test that cycles longer than the interval run back-to-back."""
        walker = scripted_walker([{"a": 1}])
        watcher = Watcher("root", {"interval": 0}, walker)

        with patch("tree_watcher.watching.watcher.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await watcher.advance()

        assert all(call.args[0] == 0 for call in mock_sleep.call_args_list)

    @pytest.mark.asyncio
    async def test_padding_every_empty_cycle(self, scripted_walker):
        """Test that empty cycles are padded too."""
        walker = scripted_walker([{}, {}, {"a": 1}])
        watcher = Watcher("root", {"interval": 100}, walker)

        with patch("tree_watcher.watching.watcher.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await watcher.advance()

        assert mock_sleep.call_count == 3
        assert all(call.args[0] > 0 for call in mock_sleep.call_args_list)

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_interval_floor_between_batches(self, scripted_walker):
        """Test that delivered batches are never closer than the interval."""
        walker = scripted_walker([{"a": n} for n in range(1, 6)] + [{}])
        watcher = Watcher("root", {"interval": 50}, walker)

        delivered = []
        for _ in range(5):
            await watcher.advance()
            delivered.append(time.monotonic())

        gaps = [later - earlier for earlier, later in zip(delivered, delivered[1:])]
        assert all(gap >= 0.045 for gap in gaps)
