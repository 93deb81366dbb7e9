"""
Data models for the log monitoring agent.

Configuration Models:
- Monitor, channel and transport settings parsed from the TOML document
- Action descriptors (shell command or argv vector)

Runtime Models:
- Notifications flowing from monitors to aggregators
- Watch event kinds and monitor lifecycle states

Values:
- The loosely typed configuration values and their text conversion
"""

# Configuration models
from .config import (
    DEFAULT_CHANNEL,
    AppConfig,
    ChannelConfig,
    Exec,
    MonitorConfig,
    NotifySpec,
    ShellExec,
    SmtpConfig,
    SmtpLogin,
    SpawnExec,
)

# Runtime models
from .runtime import MonitorState, Notification, TimeoutConstants, WatchEventKind

# Values
from .values import Value, format_value, render_template, render_value, value_to_string

__all__ = [
    # Configuration
    "DEFAULT_CHANNEL",
    "AppConfig",
    "ChannelConfig",
    "Exec",
    "MonitorConfig",
    "NotifySpec",
    "ShellExec",
    "SmtpConfig",
    "SmtpLogin",
    "SpawnExec",
    # Runtime
    "MonitorState",
    "Notification",
    "TimeoutConstants",
    "WatchEventKind",
    # Values
    "Value",
    "format_value",
    "render_template",
    "render_value",
    "value_to_string",
]
