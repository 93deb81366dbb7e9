"""
Asynchronous execution of monitor actions.

An action is either a shell command line (run through ``/bin/sh``) or an
argv vector spawned directly. Named captures of the triggering match are
passed to the child as environment variables on top of the agent's own
environment.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import psutil

from ..models.config import Exec, ShellExec
from ..models.runtime import TimeoutConstants
from ..validation import ErrorSeverity, handle_error

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one action run."""

    command: str
    returncode: Optional[int] = None
    pid: Optional[int] = None
    # Set when the process could not be spawned.
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.returncode == 0


def build_environment(captures: Mapping[str, str], base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Merge capture values over the parent environment."""
    env = dict(os.environ if base is None else base)
    env.update(captures)
    return env


def terminate_process_tree(pid: int, name: str) -> None:
    """
    Terminate a process and all of its descendants.

    Sends SIGTERM to the whole tree, waits, then SIGKILLs any survivors.
    """
    try:
        parent = psutil.Process(pid)
        processes: List[psutil.Process] = [parent] + parent.children(recursive=True)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {name} (PID: {pid}) already terminated")
        return
    except psutil.AccessDenied:
        logger.warning(f"Access denied to process {name} (PID: {pid})")
        return

    logger.info(f"Terminating {name} (PID: {pid}) and {len(processes) - 1} descendant(s)")
    for proc in processes:
        try:
            proc.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    _, alive = psutil.wait_procs(processes, timeout=TimeoutConstants.TERMINATION_GRACEFUL_TIMEOUT)
    if not alive:
        return

    logger.warning(f"{len(alive)} process(es) of {name} survived SIGTERM, killing")
    for proc in alive:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass
    _, alive = psutil.wait_procs(alive, timeout=TimeoutConstants.TERMINATION_FORCE_TIMEOUT)
    for proc in alive:
        logger.error(f"Process {proc.pid} of {name} could not be killed")


class ActionExecutor:
    """
    Runs actions for one monitor and waits for them to exit.

    Output of the child is not captured; it goes to the agent's own
    stdout and stderr.
    """

    def __init__(self, label: str = ""):
        self.label = label

    def _prefix(self) -> str:
        return f"[{self.label}] " if self.label else ""

    async def _spawn(self, action: Exec, env: Dict[str, str]) -> asyncio.subprocess.Process:
        if isinstance(action, ShellExec):
            return await asyncio.create_subprocess_shell(action.command, env=env)
        return await asyncio.create_subprocess_exec(*action.argv, env=env)

    async def run(self, action: Exec, captures: Optional[Mapping[str, str]] = None) -> ActionResult:
        """
        Spawn ``action`` and wait for it to exit.

        Spawn failures are logged and reported in the result rather than
        raised. If the waiting task is cancelled the child's process tree is
        terminated before the cancellation propagates.
        """
        command = action.describe()
        result = ActionResult(command=command)
        env = build_environment(captures or {})
        start = time.monotonic()

        try:
            process = await self._spawn(action, env)
        except OSError as e:
            result.error = str(e)
            handle_error(
                error=e,
                context=f"{self._prefix()}spawning `{command}`",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger
            )
            return result

        result.pid = process.pid
        logger.debug(f"{self._prefix()}Started `{command}` (PID: {process.pid})")

        try:
            result.returncode = await process.wait()
        except asyncio.CancelledError:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, terminate_process_tree, process.pid, command)
            raise
        finally:
            result.duration = time.monotonic() - start

        if result.returncode != 0:
            logger.warning(f"{self._prefix()}`{command}` exited with status {result.returncode}")
        else:
            logger.debug(f"{self._prefix()}`{command}` finished in {result.duration:.3f}s")
        return result
