"""
Orchestration module for running the monitoring agent.

This module provides the shared global-variable store and signal handling.
The Supervisor lives in ``tailwatch.orchestration.supervisor``; it is not
re-exported here because it depends on the monitoring package, which in
turn depends on the shared state store.
"""

from .shared_state import ReadWriteLock, SharedStateStore, StateSession
from .signal_handler import SignalHandler

__all__ = [
    "ReadWriteLock",
    "SharedStateStore",
    "SignalHandler",
    "StateSession",
]
