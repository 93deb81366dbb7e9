"""
Log tailing and match dispatch.

This module provides the per-file tail engine, its watchdog-backed change
notifications, the pattern dispatcher and the Monitor that ties them
together.
"""

from .dispatcher import NotificationSink, PatternDispatcher
from .log_tail import LogTail
from .monitor import Monitor
from .watcher import FileWatch

__all__ = [
    "FileWatch",
    "LogTail",
    "Monitor",
    "NotificationSink",
    "PatternDispatcher",
]
