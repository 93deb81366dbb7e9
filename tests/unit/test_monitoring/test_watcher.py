"""
Unit tests for the watchdog-backed FileWatch.
"""

import asyncio
import os
import threading
import time
from unittest.mock import MagicMock

import pytest
from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)

from tailwatch.models.runtime import WatchEventKind
from tailwatch.monitoring.watcher import FileWatch
from tailwatch.validation import SetupError


async def drain(watch: FileWatch):
    """Let scheduled hand-offs run, then collect what is queued."""
    await asyncio.sleep(0.05)
    events = []
    while watch.pending():
        events.append(await watch.next_event())
    return events


@pytest.mark.unit
class TestEventMapping:
    """Test cases for translating watchdog events."""

    @pytest.mark.asyncio
    async def test_modification_of_watched_path(self, log_file):
        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        watch._handler.dispatch(FileModifiedEvent(str(log_file)))
        assert await drain(watch) == [WatchEventKind.MODIFIED]

    @pytest.mark.asyncio
    async def test_other_paths_are_ignored(self, log_file):
        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        watch._handler.dispatch(FileModifiedEvent(str(log_file.parent / "other.log")))
        watch._handler.dispatch(FileOpenedEvent(str(log_file)))
        assert await drain(watch) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "make_event",
        [
            lambda p: FileMovedEvent(p, p + ".1"),
            lambda p: FileMovedEvent(p + ".new", p),
            lambda p: FileDeletedEvent(p),
        ],
    )
    async def test_rotation_events(self, log_file, make_event):
        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        watch._handler.dispatch(make_event(str(log_file)))
        assert await drain(watch) == [WatchEventKind.ROTATED]

    @pytest.mark.asyncio
    async def test_events_are_coalesced(self, log_file):
        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        path = str(log_file)
        watch._handler.dispatch(FileModifiedEvent(path))
        watch._handler.dispatch(FileCreatedEvent(path))
        watch._handler.dispatch(FileDeletedEvent(path))
        watch._handler.dispatch(FileModifiedEvent(path))
        assert await drain(watch) == [WatchEventKind.ROTATED]

    @pytest.mark.asyncio
    async def test_stopped_watch_drops_events(self, log_file):
        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        watch.stop()
        watch.emit(WatchEventKind.MODIFIED)
        assert await drain(watch) == []


@pytest.mark.unit
class TestObserver:
    """Test cases running the real watchdog observer."""

    @pytest.mark.asyncio
    async def test_append_is_observed(self, log_file):
        watch = FileWatch(log_file)
        watch.start()
        try:
            assert watch.running and watch.armed
            with open(log_file, "ab") as f:
                f.write(b"hello\n")
            assert await asyncio.wait_for(watch.next_event(), timeout=5) is WatchEventKind.MODIFIED
        finally:
            watch.stop()
        assert not watch.running

    @pytest.mark.asyncio
    async def test_rename_is_observed(self, log_file):
        watch = FileWatch(log_file)
        watch.start()
        try:
            os.rename(log_file, str(log_file) + ".1")
            kinds = set()
            while WatchEventKind.ROTATED not in kinds:
                kinds.add(await asyncio.wait_for(watch.next_event(), timeout=5))
        finally:
            watch.stop()

    @pytest.mark.asyncio
    async def test_unwatch_and_rewatch(self, log_file):
        watch = FileWatch(log_file)
        watch.start()
        try:
            watch.unwatch()
            assert not watch.armed
            watch.rewatch()
            assert watch.armed
        finally:
            watch.stop()

    @pytest.mark.asyncio
    async def test_missing_directory_is_setup_error(self, temp_dir):
        watch = FileWatch(temp_dir / "no-such-dir" / "app.log")
        with pytest.raises(SetupError):
            watch.start()


@pytest.mark.unit
class TestShutdown:
    """Test cases for stopping the observer without blocking the loop."""

    @pytest.mark.asyncio
    async def test_stop_does_not_join(self, log_file):
        joined_from = []

        def slow_join(timeout=None):
            joined_from.append(threading.current_thread())
            time.sleep(0.2)

        observer = MagicMock()
        observer.join.side_effect = slow_join
        observer.is_alive.return_value = False

        watch = FileWatch(log_file, loop=asyncio.get_running_loop())
        watch._observer = observer

        start = time.monotonic()
        watch.stop()
        assert time.monotonic() - start < 0.1
        observer.stop.assert_called_once()
        observer.join.assert_not_called()

        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        ticking = asyncio.create_task(ticker())
        try:
            await watch.wait_stopped()
        finally:
            ticking.cancel()
        assert joined_from and joined_from[0] is not threading.main_thread()
        assert ticks > 5

        # A second wait has nothing left to join.
        await watch.wait_stopped()
        observer.join.assert_called_once()

    @pytest.mark.asyncio
    async def test_real_observer_thread_finishes(self, log_file):
        watch = FileWatch(log_file)
        watch.start()
        observer = watch._observer
        watch.stop()
        await watch.wait_stopped()
        assert not observer.is_alive()
