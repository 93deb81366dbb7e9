"""
Signal handling for the orchestration module.

SIGINT and SIGTERM are routed into the event loop and turned into a
graceful shutdown request.
"""

import asyncio
import logging
import signal
from typing import Dict, Optional

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """
    Manages signal registration and cleanup for a running Supervisor.

    The handlers only set ``shutdown_requested``; the supervisor reacts to
    it on the loop.
    """

    def __init__(self, shutdown_requested: asyncio.Event):
        self.shutdown_requested = shutdown_requested
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._registered: Dict[int, bool] = {}

    def setup_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Install handlers on the running (or given) loop."""
        self._loop = loop or asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._handle_signal, sig)
                self._registered[sig] = True
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Failed to set up handler for {sig.name}: {e}")
        logger.debug("Signal handlers set up")

    def cleanup_signal_handlers(self) -> None:
        """Remove the handlers installed by setup_signal_handlers."""
        if self._loop is None:
            return
        for sig in list(self._registered):
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Failed to restore handler for signal {sig}: {e}")
        self._registered.clear()
        logger.debug("Signal handlers restored")

    def _handle_signal(self, signum: int) -> None:
        if self.shutdown_requested.is_set():
            logger.warning(f"Signal {signum} received again, shutdown already in progress")
            return
        logger.warning(f"Signal {signum} received. Shutting down.")
        self.shutdown_requested.set()
