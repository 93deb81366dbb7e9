"""
Per-channel notification batching and delivery.

Each channel runs one Aggregator task. Producers hand notifications over a
capacity-1 queue; a channel with a batch interval collects them and sends
one combined notification per tick.
"""

import asyncio
import logging
from typing import List, Optional

from ..models.config import ChannelConfig
from ..models.runtime import Notification
from .transport import SmtpTransport

logger = logging.getLogger(__name__)

AGGREGATE_TITLE = "Tailwatch Aggregated Notification"


class Aggregator:
    """
    Delivery loop for one notification channel.

    Without ``every`` each notification is sent as soon as it arrives. With
    ``every`` notifications are queued and flushed on each tick: one queued
    notification is sent unchanged, several are merged into one whose body
    is the newline-joined bodies in arrival order.
    """

    def __init__(self, config: ChannelConfig, transport: Optional[SmtpTransport] = None):
        self.config = config
        self.name = config.name
        if transport is None and config.smtp is not None:
            transport = SmtpTransport(config.smtp)
        self.transport = transport
        self.inbound: asyncio.Queue = asyncio.Queue(maxsize=1)
        self.queue: List[Notification] = []

    async def submit(self, notification: Notification) -> None:
        """Hand a notification to the channel, waiting while the slot is taken."""
        await self.inbound.put(notification)

    async def run(self) -> None:
        """Process notifications until cancelled."""
        logger.debug(f"[{self.name}] Aggregator started")
        if self.config.every is None:
            while True:
                notification = await self.inbound.get()
                logger.info(f"[{self.name}] Received notification")
                await self.send(notification)

        loop = asyncio.get_running_loop()
        interval = self.config.every
        next_tick = loop.time() + interval
        receive = asyncio.ensure_future(self.inbound.get())
        try:
            while True:
                timeout = max(next_tick - loop.time(), 0)
                done, _ = await asyncio.wait({receive}, timeout=timeout)
                if receive in done:
                    logger.info(f"[{self.name}] Received notification")
                    self.queue.append(receive.result())
                    receive = asyncio.ensure_future(self.inbound.get())

                now = loop.time()
                if now >= next_tick:
                    while next_tick <= now:
                        next_tick += interval
                    await self.flush()
        finally:
            receive.cancel()

    async def flush(self) -> None:
        """Send whatever is queued as zero, one or one combined notification."""
        if not self.queue:
            logger.debug(f"[{self.name}] Tick...")
            return
        if len(self.queue) == 1:
            await self.send(self.queue.pop())
            return

        pending, self.queue = self.queue, []
        logger.info(f"[{self.name}] Sending aggregate of {len(pending)} notifications")
        await self.send(Notification(
            channel=self.name,
            title=AGGREGATE_TITLE,
            body="\n".join(notification.body for notification in pending),
        ))

    async def send(self, notification: Notification) -> None:
        """
        Deliver one notification through the channel's transport.

        Failures are logged and swallowed so the channel keeps running.
        """
        logger.info(f"[{self.name}] Sending notification '{notification.title}'")
        if self.transport is None:
            return

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.transport.send, notification)
        except Exception as e:
            logger.error(f"[{self.name}] Failed to send email: {e}")
            smtp = self.config.smtp
            if smtp is not None and smtp.login is None:
                logger.info(f"[{self.name}] Consider setting smtp.login with host, username and password.")
