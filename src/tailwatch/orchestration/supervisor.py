"""
Top-level task supervision.

The Supervisor builds the shared state store, one Aggregator per
notification channel and one Monitor per configured monitor, runs each as
its own task and tears everything down as soon as any of them ends.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..models.config import DEFAULT_CHANNEL, AppConfig, ChannelConfig
from ..monitoring.monitor import Monitor
from ..notification.aggregator import Aggregator
from ..validation import MonitorExitedError, SetupError
from .shared_state import SharedStateStore

logger = logging.getLogger(__name__)


class Supervisor:
    """
    Owns every task of a running agent.

    Setup is all-or-nothing: if any monitor fails to open its log, the
    monitors already set up are closed and SetupError is raised. Once
    running, a task ending for any reason is fatal; only a shutdown request
    ends run() normally.
    """

    def __init__(self, config: AppConfig, shutdown_requested: Optional[asyncio.Event] = None):
        self.config = config
        self.shutdown_requested = shutdown_requested or asyncio.Event()
        self.store = SharedStateStore(config.variables)
        self.aggregators: Dict[str, Aggregator] = {}
        self.monitors: List[Monitor] = []
        self._set_up = False

    def build(self) -> None:
        """Create aggregators and monitors without touching the filesystem."""
        channels = dict(self.config.channels)
        channels.setdefault(DEFAULT_CHANNEL, ChannelConfig(name=DEFAULT_CHANNEL))
        self.aggregators = {name: Aggregator(channel) for name, channel in channels.items()}
        self.monitors = [
            Monitor(monitor_config, self.store, sinks=self.aggregators)
            for monitor_config in self.config.monitors
        ]

    async def setup(self) -> None:
        """
        Open every monitored log file.

        Raises:
            SetupError: Naming the first monitor that could not be set up
        """
        if not self.monitors:
            self.build()
        ready: List[Monitor] = []
        for monitor in self.monitors:
            try:
                await monitor.setup()
            except SetupError as e:
                for opened in ready:
                    opened.close()
                await asyncio.gather(*(opened.wait_closed() for opened in ready))
                raise SetupError(f"Monitor `{monitor.name}`: {e}") from e
            ready.append(monitor)
        self._set_up = True
        logger.info(
            f"Set up {len(self.monitors)} monitor(s) and {len(self.aggregators)} notification channel(s)"
        )

    def request_shutdown(self) -> None:
        self.shutdown_requested.set()

    async def run(self) -> None:
        """
        Run all tasks until shutdown is requested or one of them ends.

        Raises:
            SetupError: If setup had not been done and fails
            MonitorExitedError: If any monitor or aggregator task ends
        """
        if not self._set_up:
            await self.setup()

        tasks: List[asyncio.Task] = []
        for name, aggregator in self.aggregators.items():
            tasks.append(asyncio.create_task(aggregator.run(), name=f"Aggregator `{name}`"))
        for monitor in self.monitors:
            tasks.append(asyncio.create_task(monitor.run(), name=f"Monitor `{monitor.name}`"))
        shutdown = asyncio.create_task(self.shutdown_requested.wait(), name="shutdown")

        try:
            done, _ = await asyncio.wait([shutdown, *tasks], return_when=asyncio.FIRST_COMPLETED)
        finally:
            await self._stop([shutdown, *tasks])

        if shutdown in done:
            logger.info("Shutdown complete")
            return

        finished = next(task for task in tasks if task in done)
        cause = None if finished.cancelled() else finished.exception()
        logger.error(f"{finished.get_name()} exited early.")
        raise MonitorExitedError(finished.get_name(), cause)

    async def _stop(self, tasks: List[asyncio.Task]) -> None:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for monitor in self.monitors:
            monitor.close()
        # Observer threads are joined off the loop, concurrently.
        await asyncio.gather(*(monitor.wait_closed() for monitor in self.monitors))
