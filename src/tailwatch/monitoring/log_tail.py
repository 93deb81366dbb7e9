"""
Incremental reader for an append-only log file.

LogTail keeps a byte cursor into an open file and, on every poll, returns
the newly appended content as one chunk of complete lines. It recovers from
truncation (cursor clamped to the new length) and from rotation (the path is
reopened and read from the start).
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Tuple, Union

from ..models.runtime import TimeoutConstants, WatchEventKind
from ..validation import ErrorSeverity, FileMovedError, RecoveryError, SetupError, handle_error
from .watcher import FileWatch

logger = logging.getLogger(__name__)

FileIdentity = Tuple[int, int]


def _identity(st: os.stat_result) -> FileIdentity:
    return st.st_dev, st.st_ino


class LogTail:
    """
    Tail state for one log file.

    The file is opened at construction and the cursor placed at its end, so
    only content written after startup is ever returned.

    Args:
        path: File to tail
        watch: Optional FileWatch to start now and re-arm after rotation
        label: Monitor name used to prefix log messages
        recovery_timeout: Seconds to keep retrying the reopen after rotation
        retry_interval: Seconds between reopen attempts
        on_recovery: Called with True when rotation recovery starts and with
            False when it succeeds
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        watch: Optional[FileWatch] = None,
        label: str = "",
        recovery_timeout: float = TimeoutConstants.RECOVERY_TIMEOUT,
        retry_interval: float = TimeoutConstants.RECOVERY_RETRY_INTERVAL,
        on_recovery: Optional[Callable[[bool], None]] = None,
    ):
        self.path = Path(os.path.abspath(path))
        self.watch = watch
        self.label = label
        self.recovery_timeout = recovery_timeout
        self.retry_interval = retry_interval
        self.on_recovery = on_recovery
        self._recovering = False

        try:
            self._file: BinaryIO = open(self.path, "rb")
        except OSError as e:
            raise SetupError(f"Failed to open {self.path}: {e}") from e

        st = os.fstat(self._file.fileno())
        self._identity = _identity(st)
        self.cursor = st.st_size

        if self.watch is not None:
            try:
                self.watch.start()
            except SetupError:
                self._file.close()
                raise

    @property
    def recovering(self) -> bool:
        return self._recovering

    @property
    def closed(self) -> bool:
        return self._file.closed

    def _prefix(self) -> str:
        return f"[{self.label}] " if self.label else ""

    def _path_replaced(self) -> bool:
        """True if the path no longer refers to the open file."""
        try:
            st = os.stat(self.path)
        except OSError as e:
            # Missing, or a parent directory was swapped out.
            logger.debug(f"{self._prefix()}Cannot stat {self.path}: {e}")
            return True
        return _identity(st) != self._identity

    async def _recover(self) -> None:
        """
        Reopen the path after a rotation.

        Raises:
            FileMovedError: If nothing can be opened at the path within
                recovery_timeout
            RecoveryError: If the watch cannot be re-armed
        """
        logger.info(f"{self._prefix()}File {self.path} was renamed. Reestablishing file descriptors.")
        self._recovering = True
        if self.on_recovery is not None:
            self.on_recovery(True)

        if self.watch is not None:
            self.watch.unwatch()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.recovery_timeout
        while True:
            try:
                new_file = open(self.path, "rb")
                break
            except OSError as e:
                if loop.time() > deadline:
                    raise FileMovedError(f"File {self.path} was moved: {e}") from e
                await asyncio.sleep(self.retry_interval)

        self._file.close()
        self._file = new_file
        self._identity = _identity(os.fstat(new_file.fileno()))
        self.cursor = 0

        if self.watch is not None:
            try:
                self.watch.rewatch()
            except OSError as e:
                raise RecoveryError(f"Failed to re-watch {self.path}: {e}") from e

        self._recovering = False
        if self.on_recovery is not None:
            self.on_recovery(False)
        logger.info(f"{self._prefix()}File descriptors were reestablished.")

    async def poll(self, event: WatchEventKind = WatchEventKind.MODIFIED) -> Optional[str]:
        """
        Read whatever complete lines were appended since the last poll.

        Returns:
            The new content without its final newline, or None when there is
            nothing to hand on (no growth, truncation, an unterminated last
            line, undecodable bytes, or a failed read)

        Raises:
            FileMovedError: If a rotation could not be recovered from
        """
        # A rotation event can arrive after the identity check already
        # caught the rotation; only the path decides whether to reopen.
        if self._path_replaced():
            await self._recover()
        elif event is WatchEventKind.ROTATED:
            logger.debug(f"{self._prefix()}Ignoring rotation event, {self.path} is still the open file")

        try:
            return self._read_chunk()
        except OSError as e:
            # The cursor is only advanced after a complete read.
            handle_error(
                error=e,
                context=f"{self._prefix()}reading {self.path}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger
            )
            return None

    def _read_chunk(self) -> Optional[str]:
        fd = self._file.fileno()
        length = os.fstat(fd).st_size

        if length < self.cursor:
            logger.warning(f"{self._prefix()}File {self.path} was truncated")
            self.cursor = length
            return None
        if length == self.cursor:
            return None

        logger.debug(f"{self._prefix()}Log file grew by {length - self.cursor} bytes")

        # Absolute offsets: the file may grow between the fstat and the reads.
        if os.pread(fd, 1, length - 1) != b"\n":
            logger.warning(f"{self._prefix()}Log chunk does not end in newline.")
            return None

        size = length - 1 - self.cursor
        data = os.pread(fd, size, self.cursor) if size else b""
        if len(data) < size:
            logger.warning(f"{self._prefix()}Short read from {self.path}, expected {size} bytes, got {len(data)}")
            return None

        try:
            chunk = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"{self._prefix()}Log chunk is not valid UTF-8: {e}")
            self.cursor = length
            return None

        self.cursor = length
        return chunk

    def close(self) -> None:
        """Stop the watch and close the file."""
        if self.watch is not None:
            self.watch.stop()
        self._file.close()

    async def wait_closed(self) -> None:
        """Wait for the watch thread to finish after close()."""
        if self.watch is not None:
            await self.watch.wait_stopped()
