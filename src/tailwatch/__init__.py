"""
tailwatch: log-driven monitoring agent.

Watches log files for appended lines, matches them against per-monitor
regular expressions and reacts by running commands, updating global
variables and sending notifications.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Data structures and type definitions
- validation: Value validation and error handling
- monitoring: File tailing, watching and match dispatch
- executor: Action process execution
- notification: Channel aggregation and email delivery
- orchestration: Shared state, signal handling and task supervision
- cli: Command-line interface

Usage:
    From command line:
        tailwatch -c tailwatch.toml
        python -m tailwatch --check

    Programmatically:
        from tailwatch import load_config
        from tailwatch.orchestration.supervisor import Supervisor
        config = load_config(Path("tailwatch.toml"))
        asyncio.run(Supervisor(config).run())
"""

# Main interfaces
from .config import clear_config_cache, get_config, load_config, parse_config, set_config_path

# Model classes for external use
from .models import (
    AppConfig,
    ChannelConfig,
    MonitorConfig,
    Notification,
    NotifySpec,
    ShellExec,
    SpawnExec,
    value_to_string,
)

# Validation utilities
from .validation import (
    FileMovedError,
    MonitorExitedError,
    SetupError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "load_config",
    "parse_config",
    # Models
    "AppConfig",
    "ChannelConfig",
    "MonitorConfig",
    "Notification",
    "NotifySpec",
    "ShellExec",
    "SpawnExec",
    "value_to_string",
    # Errors
    "FileMovedError",
    "MonitorExitedError",
    "SetupError",
    "ValidationError",
]
