"""
Configuration file loading utilities.

This module handles reading and parsing the TOML configuration document,
turning syntax errors into readable messages that point at the offending
line.
"""

import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..models.config import AppConfig
from ..validation import ValidationError
from .validators import validate_app_config

logger = logging.getLogger(__name__)

_ERROR_POSITION = re.compile(r"\(at line (\d+), column (\d+)\)")


def _error_position(error: tomllib.TOMLDecodeError) -> Optional[Tuple[int, int]]:
    """Return the 1-based (line, column) of a decode error, if known."""
    lineno = getattr(error, "lineno", None)
    colno = getattr(error, "colno", None)
    if lineno is not None and colno is not None:
        return lineno, colno
    match = _ERROR_POSITION.search(str(error))
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def format_syntax_error(doc: str, error: tomllib.TOMLDecodeError) -> str:
    """
    Render a TOML syntax error with the offending line and a caret.

    Example output::

        Invalid value

        3:	log =
        	      ^
    """
    message = getattr(error, "msg", None) or _ERROR_POSITION.sub("", str(error)).strip()
    position = _error_position(error)
    if position is None:
        return message

    lineno, colno = position
    lines = doc.splitlines()
    if not 1 <= lineno <= len(lines):
        return message

    line = lines[lineno - 1]
    message += "\n"
    message += f"\n{lineno}:\t{line}"
    message += "\n\t" + " " * max(colno - 1, 0) + "^"
    return message


def parse_toml(doc: str) -> Dict[str, Any]:
    """
    Parse a TOML document.

    Raises:
        ValidationError: If the document is malformed
    """
    try:
        return tomllib.loads(doc)
    except tomllib.TOMLDecodeError as e:
        raise ValidationError(format_syntax_error(doc, e)) from e


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    return parse_toml(file_path.read_text(encoding="utf-8"))


def parse_config(doc: str) -> AppConfig:
    """Parse and validate a configuration document given as text."""
    return validate_app_config(parse_toml(doc))


def load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the configuration file at ``config_path``.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the document is malformed or invalid
    """
    config = validate_app_config(load_toml_file(Path(config_path)))
    logger.info(
        f"Loaded {len(config.monitors)} monitor(s) and "
        f"{len(config.channels)} notification channel(s)"
    )
    return config
