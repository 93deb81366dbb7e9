"""
Command-line interface for the tailwatch log monitoring agent.

This module provides the main CLI entry point: it parses arguments, loads
and validates the configuration document and runs the Supervisor until a
signal asks it to stop or a monitor fails.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import DEFAULT_CONFIG_PATH, get_config, set_config_path
from ..models.config import AppConfig
from ..orchestration.signal_handler import SignalHandler
from ..orchestration.supervisor import Supervisor
from ..validation import MonitorExitedError, SetupError, ValidationError, handle_cli_error

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tailwatch",
        description="Watch log files and react to matching lines.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the TOML configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity (default: INFO).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate the configuration, print a summary and exit.",
    )
    return parser


def describe_config(config: AppConfig) -> List[str]:
    """One summary line per monitor and channel."""
    lines = []
    for monitor in config.monitors:
        parts = []
        if monitor.log is not None:
            parts.append(f"log={monitor.log}")
        if monitor.every is not None:
            parts.append(f"every={monitor.every:g}s")
        if monitor.exec is not None:
            parts.append(f"exec=`{monitor.exec.describe()}`")
        if monitor.notify is not None:
            parts.append(f"notify={monitor.notify.channel}")
        if monitor.mutates_globals:
            parts.append("mutates globals")
        lines.append(f"monitor {monitor.name}: " + ", ".join(parts))
    for channel in config.channels.values():
        transport = "smtp" if channel.smtp is not None else "none"
        batching = f"every {channel.every:g}s" if channel.every is not None else "immediate"
        lines.append(f"channel {channel.name}: transport={transport}, {batching}")
    return lines


async def run_agent(config: AppConfig) -> None:
    """Run a Supervisor with SIGINT/SIGTERM mapped to a graceful shutdown."""
    shutdown_requested = asyncio.Event()
    signal_handler = SignalHandler(shutdown_requested)
    signal_handler.setup_signal_handlers()
    try:
        await Supervisor(config, shutdown_requested).run()
    finally:
        signal_handler.cleanup_signal_handlers()


def main_cli(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main command-line interface for tailwatch.

    Raises:
        SystemExit: With status 1 on configuration errors, monitor setup
            failures or a monitor exiting.
    """
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    set_config_path(args.config)
    try:
        config = get_config()
    except (FileNotFoundError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context=f"Failed to parse {args.config}",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    if args.check:
        for line in describe_config(config):
            print(line)
        print(f"{args.config}: OK")
        return

    logger.info(f"Starting tailwatch with {len(config.monitors)} monitor(s)")
    try:
        asyncio.run(run_agent(config))
    except SetupError as e:
        handle_cli_error(error=e, context="Setup failed", exit_code=1, logger=logger)
    except MonitorExitedError as e:
        handle_cli_error(error=e, context="Stopped", exit_code=1, logger=logger)


if __name__ == "__main__":
    main_cli()
