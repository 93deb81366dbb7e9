"""
Filesystem watch for a single log file.

watchdog delivers events on its observer thread. FileWatch hands them to the
event loop through a capacity-1 asyncio.Queue so that all reading and
dispatching happens on the loop.

The watch is registered on the file's parent directory (non-recursive) and
filtered to the file's own path, which lets it see the file being renamed
away, deleted or replaced.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..models.runtime import TimeoutConstants, WatchEventKind
from ..validation import SetupError

logger = logging.getLogger(__name__)


def _normalize(path: Union[str, bytes]) -> str:
    return os.path.abspath(os.fsdecode(path))


class _LogFileEventHandler(FileSystemEventHandler):
    """Maps watchdog events for one path to WatchEventKind values."""

    def __init__(self, watch: "FileWatch"):
        super().__init__()
        self.watch = watch

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        path = self.watch.path_str
        src = _normalize(event.src_path)
        dest = _normalize(event.dest_path) if getattr(event, "dest_path", "") else ""

        if event.event_type == "moved":
            # Renamed away, or something else renamed onto our path.
            if src == path or dest == path:
                self.watch.emit(WatchEventKind.ROTATED)
        elif src != path:
            return
        elif event.event_type == "deleted":
            self.watch.emit(WatchEventKind.ROTATED)
        elif event.event_type in ("modified", "created", "closed"):
            self.watch.emit(WatchEventKind.MODIFIED)


class FileWatch:
    """
    Watches one file path and exposes its changes as an async stream.

    Events are coalesced: while one event is waiting to be consumed, further
    MODIFIED events are dropped (the pending poll will read all new content
    anyway) and a ROTATED event replaces a pending MODIFIED one.
    """

    def __init__(self, path: Union[str, Path], loop: Optional[asyncio.AbstractEventLoop] = None):
        self.path = Path(os.path.abspath(path))
        self.path_str = str(self.path)
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._handler = _LogFileEventHandler(self)
        self._observer: Optional[Observer] = None
        self._watch = None
        self._stopping: Optional[Observer] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._observer is not None and not self._stopped

    @property
    def armed(self) -> bool:
        return self._watch is not None

    def start(self) -> None:
        """
        Start the observer thread and register the watch.

        Raises:
            SetupError: If the parent directory cannot be watched
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._observer = Observer()
        self._observer.daemon = True
        try:
            self.rewatch()
            self._observer.start()
        except OSError as e:
            self._observer = None
            self._watch = None
            raise SetupError(f"Failed to watch {self.path}: {e}") from e
        logger.debug(f"Watching {self.path}")

    def unwatch(self) -> None:
        """Unregister the watch while keeping the observer thread alive."""
        if self._observer is None or self._watch is None:
            return
        try:
            self._observer.unschedule(self._watch)
        except KeyError:
            pass
        self._watch = None

    def rewatch(self) -> None:
        """
        Register (or re-register) the watch on the parent directory.

        Raises:
            OSError: If the directory cannot be watched
        """
        if self._observer is None:
            raise RuntimeError("FileWatch has not been started")
        self.unwatch()
        self._watch = self._observer.schedule(self._handler, str(self.path.parent), recursive=False)

    def stop(self) -> None:
        """
        Ask the observer thread to stop without waiting for it.

        Use wait_stopped() to join the thread off the event loop.
        """
        self._stopped = True
        observer, self._observer = self._observer, None
        self._watch = None
        if observer is None:
            return
        observer.stop()
        self._stopping = observer
        logger.debug(f"Stopped watching {self.path}")

    async def wait_stopped(self) -> None:
        """Join a stopped observer thread in the default executor."""
        observer, self._stopping = self._stopping, None
        if observer is None:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, observer.join, TimeoutConstants.OBSERVER_JOIN_TIMEOUT)
        if observer.is_alive():
            logger.warning(f"Observer for {self.path} did not stop in time")

    def emit(self, kind: WatchEventKind) -> None:
        """
        Hand an event to the loop. Called from the observer thread.

        Never blocks the observer thread: the watch may be unscheduled from
        the loop while the observer holds its dispatch lock.
        """
        loop = self._loop
        if self._stopped or loop is None:
            return
        coro = self._offer(kind)
        try:
            future = asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError:
            # Loop closed during shutdown.
            coro.close()
            return
        future.add_done_callback(self._log_bridge_error)

    @staticmethod
    def _log_bridge_error(future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Failed to deliver watch event: {error}")

    async def _offer(self, kind: WatchEventKind) -> None:
        if not self._queue.full():
            self._queue.put_nowait(kind)
            return
        if kind is WatchEventKind.ROTATED:
            pending = self._queue.get_nowait()
            if pending is not WatchEventKind.ROTATED:
                logger.debug(f"Rotation of {self.path} supersedes pending {pending.value} event")
            self._queue.put_nowait(WatchEventKind.ROTATED)

    async def next_event(self) -> WatchEventKind:
        """Wait for the next change to the watched path."""
        return await self._queue.get()

    def pending(self) -> bool:
        return not self._queue.empty()
