"""
Unit tests for exception types and error handling helpers.
"""

import logging

import pytest

from tailwatch.validation import (
    ErrorSeverity,
    FileMovedError,
    MonitorExitedError,
    RecoveryError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)


@pytest.mark.unit
class TestExceptions:
    """Test cases for the exception types."""

    def test_validation_error_fields(self):
        error = ValidationError("Key `x` must be a string.", field_name="x", value=1)
        assert str(error) == "Key `x` must be a string."
        assert error.field_name == "x"
        assert error.value == 1
        assert error.severity is ErrorSeverity.ERROR

    def test_file_moved_is_recovery_error(self):
        assert issubclass(FileMovedError, RecoveryError)

    def test_monitor_exited_message(self):
        cause = FileMovedError("File /x was moved: gone")
        error = MonitorExitedError("Monitor `a`", cause)
        assert str(error) == "Monitor `a` exited early: File /x was moved: gone"
        assert error.cause is cause
        assert str(MonitorExitedError("Aggregator `b`")) == "Aggregator `b` exited early"


@pytest.mark.unit
class TestHandlers:
    """Test cases for handle_error and its front-ends."""

    def test_handle_error_reraises(self):
        with pytest.raises(ValueError):
            handle_error(ValueError("bad"), "testing")

    def test_handle_error_logs_without_reraise(self, caplog):
        test_logger = logging.getLogger("tailwatch.test")
        with caplog.at_level(logging.WARNING, logger="tailwatch.test"):
            handle_error(
                ValueError("bad"), "testing", severity="warning", reraise=False, logger=test_logger
            )
        assert "Error in testing: bad" in caplog.text

    def test_handle_config_error_prefixes_context(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValidationError):
                handle_config_error(ValidationError("nope"), "loading")
        assert "Error in config loading: nope" in caplog.text

    def test_handle_cli_error_exits(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(SystemExit) as exc_info:
                handle_cli_error(ValueError("broken"), "Failed to parse x.toml", exit_code=2)
        assert exc_info.value.code == 2
        assert "Failed to parse x.toml: broken" in caplog.text
