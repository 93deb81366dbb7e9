"""
Configuration management for the tailwatch package.

This module provides a clean interface for loading, validating, and accessing
the TOML configuration document with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    DEFAULT_CONFIG_PATH,
    clear_config_cache,
    get_config,
    get_config_info,
    get_config_path,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import (
    format_syntax_error,
    load_config,
    load_toml_file,
    parse_config,
    parse_toml,
)
from .validators import (
    validate_app_config,
    validate_channel_config,
    validate_exec,
    validate_monitor_config,
    validate_notify_spec,
    validate_smtp_config,
)

__all__ = [
    # Main interface
    "DEFAULT_CONFIG_PATH",
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "format_syntax_error",
    "load_config",
    "load_toml_file",
    "parse_config",
    "parse_toml",
    "validate_app_config",
    "validate_channel_config",
    "validate_exec",
    "validate_monitor_config",
    "validate_notify_spec",
    "validate_smtp_config",
]
