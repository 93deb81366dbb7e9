"""
Configuration management and singleton pattern.

This module provides the main configuration access interface, implementing
a singleton pattern so the configuration document is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import load_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Relative to the working directory. Overridden by the CLI's --config option.
DEFAULT_CONFIG_PATH = Path("tailwatch.toml")
_CONFIG_FILE_PATH = DEFAULT_CONFIG_PATH


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() call loads
    from the new path.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def get_config_path() -> Path:
    """Return the path get_config() loads from."""
    return _CONFIG_FILE_PATH


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def get_config() -> AppConfig:
    """
    Get the application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If the document is malformed or invalid
    """
    global _CONFIG
    if _CONFIG is None:
        try:
            _CONFIG = load_config(_CONFIG_FILE_PATH)
        except Exception as e:
            handle_config_error(
                error=e,
                context=f"loading {_CONFIG_FILE_PATH}",
                severity=ErrorSeverity.DEBUG,
                reraise=True,
                logger=logger
            )
            raise
    return _CONFIG


def is_config_loaded() -> bool:
    """
    Check if configuration has been loaded and cached.
    """
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "monitors_count": len(_CONFIG.monitors) if _CONFIG else 0,
        "channels_count": len(_CONFIG.channels) if _CONFIG else 0,
    }
