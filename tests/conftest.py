"""
Pytest configuration and shared fixtures for the tailwatch test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the tailwatch project.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def log_file(temp_dir):
    """An existing, empty log file."""
    path = temp_dir / "app.log"
    path.write_bytes(b"")
    return path


@pytest.fixture
def sample_config_data(log_file) -> Dict[str, Any]:
    """Sample configuration document for testing."""
    return {
        "var": {
            "environment": "test",
            "logins": [],
        },
        "monitor": {
            "login": {
                "log": str(log_file),
                "match_log": r"user (?P<user>\w+) logged in",
                "exec": "true",
                "push": {"logins": "$user"},
                "notify": "ops",
            },
            "heartbeat": {
                "every": "10s",
                "set": {"last_heartbeat": "$environment"},
            },
        },
        "notify": {
            "ops": {
                "every": "1m",
                "smtp": {
                    "from": "tailwatch@example.com",
                    "to": ["ops@example.com"],
                },
            },
        },
    }


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary configuration file for testing."""
    import toml

    config_file = temp_dir / "tailwatch.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {
        "config": config_file,
        "dir": temp_dir,
    }


# ============================================================================
# Test Utilities
# ============================================================================


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def append(path: Path, data: bytes) -> None:
        """Append raw bytes to a file."""
        with open(path, "ab") as f:
            f.write(data)

    @staticmethod
    def monitor_config(**overrides):
        """Create a MonitorConfig with test defaults."""
        import re

        from tailwatch.models.config import MonitorConfig

        values = {
            "name": "test",
            "match_log": re.compile(r"user (?P<user>\w+) logged in", re.MULTILINE),
        }
        values.update(overrides)
        return MonitorConfig(**values)


class RecordingSink:
    """Notification sink that keeps everything submitted to it."""

    def __init__(self):
        self.received: List[Any] = []

    async def submit(self, notification) -> None:
        self.received.append(notification)


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from tailwatch.config import DEFAULT_CONFIG_PATH, clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(DEFAULT_CONFIG_PATH)
