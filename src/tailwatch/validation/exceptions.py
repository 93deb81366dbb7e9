"""
Exception types and error handling helpers.

Configuration problems surface as ValidationError, per-monitor startup
problems as SetupError, and an exhausted rotation recovery as
FileMovedError. The handle_* helpers give every layer the same logging
behaviour for errors it reports.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    The message is meant to be shown to the operator as-is, so it names
    the offending key (and monitor, where there is one).
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class SetupError(Exception):
    """A monitor could not open its log file or register its watch."""


class RecoveryError(Exception):
    """A monitor could not recover from a log rotation."""


class FileMovedError(RecoveryError):
    """The tailed file did not reappear at its path after a rotation."""


class StateError(Exception):
    """A global variable mutation could not be applied."""


class MonitorExitedError(Exception):
    """A supervised task terminated. Any exit is treated as abnormal."""

    def __init__(self, task_name: str, cause: Optional[BaseException] = None):
        message = f"{task_name} exited early"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.task_name = task_name
        self.cause = cause


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a fatal CLI error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)
    effective_logger = kwargs.pop('logger', None) or logger

    if include_traceback:
        effective_logger.error(f"{context}: {error}", exc_info=error)
    else:
        effective_logger.error(f"{context}: {error}")

    sys.exit(exit_code)
