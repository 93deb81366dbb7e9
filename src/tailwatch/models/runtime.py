"""
Runtime data models.

This module contains the data structures that flow between components while
the agent is running: notifications, watch events and monitor states, plus
the timing constants shared by the tail engine and the supervisor.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Notification:
    """
    A rendered notification addressed to one channel.

    Produced by a monitor per match and consumed exactly once by the
    channel's aggregator.
    """

    channel: str
    title: str
    body: str


class WatchEventKind(Enum):
    """Filesystem change classes delivered by a FileWatch."""

    # Content was written to the watched path.
    MODIFIED = "modified"
    # The path was renamed away, deleted, or replaced by another file.
    ROTATED = "rotated"
    # Timer-driven poll, no filesystem event behind it.
    TICK = "tick"


class MonitorState(Enum):
    """Lifecycle of a Monitor task."""

    STARTING = "starting"
    WATCHING = "watching"
    RECOVERING = "recovering"
    FAILED = "failed"


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Rotation recovery
    RECOVERY_TIMEOUT = 1.0
    RECOVERY_RETRY_INTERVAL = 0.01

    # Observer shutdown
    OBSERVER_JOIN_TIMEOUT = 2.0

    # Action process tree termination
    TERMINATION_GRACEFUL_TIMEOUT = 3
    TERMINATION_FORCE_TIMEOUT = 2

    # SMTP socket timeout
    SMTP_TIMEOUT = 30.0
