"""
Match-to-action dispatch for one monitor.

Every match of the monitor's pattern in a chunk triggers, in order: the
``exec`` action, the ``set`` and ``push`` mutations of the global variables,
and the ``notify`` notification.
"""

import logging
from typing import Dict, Mapping, Optional, Protocol

from ..executor.action import ActionExecutor
from ..models.config import MonitorConfig
from ..models.runtime import Notification
from ..models.values import Value, render_template, render_value
from ..orchestration.shared_state import SharedStateStore
from ..validation import ErrorSeverity, handle_error

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    async def submit(self, notification: Notification) -> None:
        ...


class PatternDispatcher:
    """
    Turns log chunks into actions for one monitor.

    Matches are handled strictly one after another; an action is waited for
    before the next match is looked at.
    """

    def __init__(
        self,
        config: MonitorConfig,
        store: SharedStateStore,
        executor: Optional[ActionExecutor] = None,
        sinks: Optional[Mapping[str, NotificationSink]] = None,
    ):
        self.config = config
        self.store = store
        self.executor = executor or ActionExecutor(label=config.name)
        self.sinks = sinks or {}
        self.prefix = f"[{config.name}]"

    def extract_captures(self, match) -> Dict[str, str]:
        """Collect every named group that took part in the match."""
        captures: Dict[str, str] = {}
        for name in match.re.groupindex:
            value = match.group(name)
            if value is None:
                logger.warning(f"{self.prefix} Capture group `{name}` was not found.")
                continue
            captures[name] = value
        return captures

    async def dispatch(self, chunk: str) -> int:
        """
        Run the monitor's actions once per match in ``chunk``.

        Returns:
            Number of matches handled
        """
        pattern = self.config.match_log
        if pattern is None:
            return 0

        handled = 0
        for match in pattern.finditer(chunk):
            logger.info(f"{self.prefix} Match found")
            handled += 1
            try:
                await self.trigger(self.extract_captures(match), match.group(0))
            except Exception as e:
                handle_error(
                    error=e,
                    context=f"{self.prefix} handling match {match.group(0)!r}",
                    severity=ErrorSeverity.ERROR,
                    reraise=False,
                    logger=logger
                )
        return handled

    async def trigger(self, captures: Mapping[str, str], matched_text: str = "") -> None:
        """
        Run the action phase for one match (or one periodic tick).

        Template names resolve to capture groups first, then ``match``, then
        global variables.
        """
        notification = None

        async with self.store.access(exclusive=self.config.mutates_globals) as session:
            if self.config.exec is not None:
                await self.executor.run(self.config.exec, captures)

            mapping: Dict[str, Value] = session.snapshot()
            mapping["match"] = matched_text
            mapping.update(captures)

            for name, value in self.config.set.items():
                session.set(name, render_value(value, mapping))
            for name, value in self.config.push.items():
                session.push(name, render_value(value, mapping))

            notify = self.config.notify
            if notify is not None:
                notification = Notification(
                    channel=notify.channel,
                    title=render_template(notify.title, mapping),
                    body=render_template(notify.body, mapping),
                )

        if notification is not None:
            await self._send(notification)

    async def _send(self, notification: Notification) -> None:
        sink = self.sinks.get(notification.channel)
        if sink is None:
            logger.warning(f"{self.prefix} No notification channel `{notification.channel}`")
            return
        await sink.submit(notification)
