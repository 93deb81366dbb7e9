"""
Command-line interface for the tailwatch package.

This module provides the main CLI entry point for the monitoring agent.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
