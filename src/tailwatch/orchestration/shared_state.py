"""
Process-wide global variables shared by all monitors.

The store is a single mapping guarded by a reader/writer lock. Monitors
that only read variables (to render templates) share the lock; monitors
that ``set`` or ``push`` take it exclusively for their whole action phase.
"""

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional

from ..models.values import Value
from ..validation import StateError

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    An asyncio reader/writer lock that prefers waiting writers.

    Readers are admitted only while no writer holds or waits for the lock,
    so a steady stream of readers cannot starve a mutation.
    """

    def __init__(self) -> None:
        self._condition = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer

    async def acquire_read(self) -> None:
        async with self._condition:
            await self._condition.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1

    async def release_read(self) -> None:
        # Shielded: a cancellation while the condition is contended must not
        # leave the reader counted.
        await asyncio.shield(self._release_read())

    async def _release_read(self) -> None:
        async with self._condition:
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    async def acquire_write(self) -> None:
        async with self._condition:
            self._waiting_writers += 1
            try:
                await self._condition.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            except BaseException:
                # Cancelled while waiting: let blocked readers re-check.
                self._waiting_writers -= 1
                self._condition.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True

    async def release_write(self) -> None:
        await asyncio.shield(self._release_write())

    async def _release_write(self) -> None:
        async with self._condition:
            self._writer = False
            self._condition.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()


class StateSession:
    """
    A view of the store valid while its lock is held.

    Only sessions opened with ``exclusive=True`` may mutate.
    """

    def __init__(self, variables: Dict[str, Any], writable: bool):
        self._variables = variables
        self.writable = writable

    def get(self, name: str, default: Optional[Value] = None) -> Optional[Value]:
        return self._variables.get(name, default)

    def snapshot(self) -> Dict[str, Value]:
        """
        Return a copy of the top-level mapping.

        Stored values are replaced rather than mutated in place, so the copy
        keeps seeing the values current when it was taken.
        """
        return dict(self._variables)

    def _check_writable(self, name: str) -> None:
        if not self.writable:
            raise StateError(f"Cannot modify `{name}` without exclusive access")

    def set(self, name: str, value: Value) -> None:
        """Assign ``value`` to ``name``, replacing any previous value."""
        self._check_writable(name)
        self._variables[name] = value

    def push(self, name: str, value: Value) -> None:
        """
        Append ``value`` to the list stored under ``name``.

        A missing variable is created as a one-element list.

        Raises:
            StateError: If the existing value is not a list
        """
        self._check_writable(name)
        current = self._variables.get(name)
        if current is None:
            self._variables[name] = [value]
        elif isinstance(current, list):
            self._variables[name] = [*current, value]
        else:
            raise StateError(
                f"Cannot push onto `{name}`: it holds a {type(current).__name__}, not an array"
            )


class SharedStateStore:
    """The global variables and the lock guarding them."""

    def __init__(self, initial: Optional[Mapping[str, Value]] = None):
        self._variables: Dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self._lock = ReadWriteLock()

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    @asynccontextmanager
    async def access(self, exclusive: bool = False) -> AsyncIterator[StateSession]:
        """
        Hold the store for the duration of the ``async with`` block.

        Args:
            exclusive: Take the write side of the lock and allow mutation
        """
        guard = self._lock.write() if exclusive else self._lock.read()
        async with guard:
            yield StateSession(self._variables, writable=exclusive)

    def peek(self) -> Dict[str, Value]:
        """Unlocked deep copy of the variables. Meant for diagnostics and tests."""
        return copy.deepcopy(self._variables)
