"""
Configuration data models.

These are the typed descriptors produced from the TOML document by
``tailwatch.config.validators``. They are created once at startup and
never mutated afterwards.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

# Name of the channel that always exists, even when not configured.
DEFAULT_CHANNEL = "default"


@dataclass(frozen=True)
class ShellExec:
    """A command line interpreted by the system shell."""

    command: str

    def describe(self) -> str:
        return self.command


@dataclass(frozen=True)
class SpawnExec:
    """An argv vector spawned directly, without a shell."""

    argv: Tuple[str, ...]

    def describe(self) -> str:
        return " ".join(self.argv)


Exec = Union[ShellExec, SpawnExec]


@dataclass(frozen=True)
class NotifySpec:
    """
    A monitor's reference to a notification channel.

    ``title`` and ``body`` are templates rendered per match.
    """

    channel: str
    title: str
    body: str


@dataclass(frozen=True)
class MonitorConfig:
    """
    Configuration for a single monitor, one per ``[monitor.<name>]`` table.
    """

    name: str
    # File to tail. None only for purely periodic monitors.
    log: Optional[Path] = None
    # Compiled in multi-line mode.
    match_log: Optional[Pattern[str]] = None
    # Seconds between timer-driven polls.
    every: Optional[float] = None
    # Seconds. Parsed but not applied.
    cooldown: Optional[float] = None
    exec: Optional[Exec] = None
    set: Dict[str, Any] = field(default_factory=dict)
    push: Dict[str, Any] = field(default_factory=dict)
    notify: Optional[NotifySpec] = None
    # Decides between the exclusive and the shared side of the state lock.
    mutates_globals: bool = False


@dataclass(frozen=True)
class SmtpLogin:
    """Credentials for a STARTTLS relay."""

    host: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SmtpConfig:
    """Email transport for a notification channel."""

    sender: str
    recipients: Tuple[str, ...]
    port: Optional[int] = None
    login: Optional[SmtpLogin] = None


@dataclass(frozen=True)
class ChannelConfig:
    """
    Configuration for a notification channel, one per ``[notify.<name>]``.

    A channel without a transport is a silent sink.
    """

    name: str
    # Seconds between batch flushes. None means deliver immediately.
    every: Optional[float] = None
    smtp: Optional[SmtpConfig] = None


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    monitors: List[MonitorConfig]
    variables: Dict[str, Any] = field(default_factory=dict)
    channels: Dict[str, ChannelConfig] = field(default_factory=dict)
