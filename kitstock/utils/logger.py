"""Logging channels of the tracker.

``api`` carries HTTP traffic to Supabase, ``inventory`` records every stock,
sale and expense change, and ``error`` collects failures. Console output goes
to stderr so the CLI's stdout holds only command output. Outside production
each channel with a configured file also writes to a rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

from .config import get_config

# Channel name → level override; None follows ``logging.level`` from config.
CHANNELS: Dict[str, Optional[str]] = {
    "api": None,
    "inventory": None,
    "error": "ERROR",
}


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Configure ``kitstock.<name>`` once and return it.

    Args:
        name: Channel name
        log_file: Rotating file for the channel, ignored in production
        level: Level override (defaults to ``logging.level``)
    """
    config = get_config()

    logger = logging.getLogger(f"kitstock.{name}")
    logger.setLevel(getattr(logging, (level or config.logging.level).upper()))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    # Channel lines are not passed on to the root logger.
    logger.propagate = False
    formatter = logging.Formatter(config.logging.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file and not config.is_production:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config.logging.max_bytes,
            backupCount=config.logging.backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(channel: str) -> logging.Logger:
    """Logger for one of :data:`CHANNELS`, with its file from ``logging.files``."""
    if channel not in CHANNELS:
        raise ValueError(f"Unknown log channel: {channel}")
    log_file = getattr(get_config().logging.files, channel, None)
    return setup_logger(channel, log_file, CHANNELS[channel])


def get_inventory_logger() -> logging.Logger:
    """Stock, sale and expense changes."""
    return get_logger("inventory")


def get_error_logger() -> logging.Logger:
    return get_logger("error")


def get_api_logger() -> logging.Logger:
    return get_logger("api")
