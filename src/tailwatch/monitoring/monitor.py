"""
A single configured monitor running as an asyncio task.

A log monitor tails its file and dispatches every new chunk to its
PatternDispatcher. A periodic monitor (``every`` without ``log``) triggers
its actions on every tick with no captures.
"""

import asyncio
import logging
from typing import Mapping, Optional

from ..executor.action import ActionExecutor
from ..models.config import MonitorConfig
from ..models.runtime import MonitorState, WatchEventKind
from ..orchestration.shared_state import SharedStateStore
from ..validation import ErrorSeverity, RecoveryError, SetupError, handle_error
from .dispatcher import NotificationSink, PatternDispatcher
from .log_tail import LogTail
from .watcher import FileWatch

logger = logging.getLogger(__name__)


class Monitor:
    """
    Composes one LogTail and one PatternDispatcher.

    Lifecycle: STARTING, then WATCHING (switching to RECOVERING and back
    while a rotated log is reopened), and FAILED if setup or recovery fails.
    run() never returns normally.
    """

    def __init__(
        self,
        config: MonitorConfig,
        store: SharedStateStore,
        sinks: Optional[Mapping[str, NotificationSink]] = None,
        executor: Optional[ActionExecutor] = None,
    ):
        self.config = config
        self.name = config.name
        self.state = MonitorState.STARTING
        self.tail: Optional[LogTail] = None
        self.dispatcher = PatternDispatcher(config, store, executor=executor, sinks=sinks)
        self._next_tick: Optional[float] = None
        self._pending_event: Optional[asyncio.Future] = None

    def _on_recovery(self, recovering: bool) -> None:
        self.state = MonitorState.RECOVERING if recovering else MonitorState.WATCHING

    async def setup(self, watch: Optional[FileWatch] = None) -> None:
        """
        Open the log file and register its watch.

        Args:
            watch: FileWatch to use instead of a new one for the log path

        Raises:
            SetupError: If the file cannot be opened or watched
        """
        if self.config.cooldown is not None:
            logger.info(f"[{self.name}] cooldown of {self.config.cooldown}s is reserved and not applied")

        if self.config.log is not None:
            try:
                self.tail = LogTail(
                    self.config.log,
                    watch=watch or FileWatch(self.config.log),
                    label=self.name,
                    on_recovery=self._on_recovery,
                )
            except SetupError:
                self.state = MonitorState.FAILED
                raise
        self.state = MonitorState.WATCHING

    async def _next_event(self) -> WatchEventKind:
        """Wait for a filesystem event or the next timer tick."""
        loop = asyncio.get_running_loop()
        every = self.config.every
        watch = self.tail.watch if self.tail is not None else None

        if every is not None and self._next_tick is None:
            self._next_tick = loop.time() + every

        if watch is None:
            if self._next_tick is None:
                # Nothing can ever wake this monitor.
                await asyncio.Future()
            await asyncio.sleep(max(self._next_tick - loop.time(), 0))
            self._next_tick += every
            return WatchEventKind.TICK

        if self._pending_event is None:
            self._pending_event = asyncio.ensure_future(watch.next_event())

        timeout = None if self._next_tick is None else max(self._next_tick - loop.time(), 0)
        done, _ = await asyncio.wait({self._pending_event}, timeout=timeout)
        if self._pending_event in done:
            event = self._pending_event.result()
            self._pending_event = None
            return event

        now = loop.time()
        while self._next_tick <= now:
            self._next_tick += every
        return WatchEventKind.TICK

    async def run(self) -> None:
        """
        Wait for events and react to them until cancelled.

        Raises:
            RecoveryError: If the log was rotated and could not be reopened
        """
        logger.info(f"Starting monitor `{self.name}`")
        try:
            while True:
                event = await self._next_event()
                if self.tail is None:
                    await self._trigger_periodic()
                    continue

                chunk = await self.tail.poll(event)
                if chunk is not None:
                    await self.dispatcher.dispatch(chunk)
        except RecoveryError as e:
            self.state = MonitorState.FAILED
            logger.error(f"[{self.name}] {e}")
            raise
        finally:
            if self._pending_event is not None:
                self._pending_event.cancel()
                self._pending_event = None

    async def _trigger_periodic(self) -> None:
        try:
            await self.dispatcher.trigger({}, "")
        except Exception as e:
            handle_error(
                error=e,
                context=f"[{self.name}] periodic trigger",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger
            )

    def close(self) -> None:
        """Release the log file and stop its watch."""
        if self.tail is not None and not self.tail.closed:
            self.tail.close()

    async def wait_closed(self) -> None:
        if self.tail is not None:
            await self.tail.wait_closed()
