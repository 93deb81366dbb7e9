"""
Validation and error handling for the tailwatch package.

This module provides configuration value validation and the exception
types shared by the configuration, monitoring and orchestration layers.
"""

from .exceptions import (
    ErrorSeverity,
    FileMovedError,
    MonitorExitedError,
    RecoveryError,
    SetupError,
    StateError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_duration,
    validate_email_address,
    validate_email_addresses,
    validate_no_unknown_keys,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string,
    validate_table,
)

__all__ = [
    # Exceptions and handlers
    "ErrorSeverity",
    "FileMovedError",
    "MonitorExitedError",
    "RecoveryError",
    "SetupError",
    "StateError",
    "ValidationError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_duration",
    "validate_email_address",
    "validate_email_addresses",
    "validate_no_unknown_keys",
    "validate_positive_integer",
    "validate_regex_pattern",
    "validate_string",
    "validate_table",
]
