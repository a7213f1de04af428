"""
Logging configuration for tsam.
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime


def setup_logging(log_level: str = "WARNING", log_file: bool = False) -> logging.Logger:
    """
    Configure tool logging.

    Console output goes to stderr; stdout carries only the JSON response.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: If True, also log to file

    Returns:
        Root logger instance
    """
    level = getattr(logging, str(log_level).upper(), logging.WARNING)

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if log_file else level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = log_dir / f"tsam_{timestamp}.log"

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file_path}")

    return logger


def get_log_dir() -> Path:
    """
    Get platform-specific log directory.

    Returns:
        Path to log directory
    """
    if os.name == 'nt':  # Windows
        base = os.environ.get('LOCALAPPDATA', os.path.expanduser('~'))
    else:  # Linux/macOS
        base = os.environ.get('XDG_CACHE_HOME', os.path.expanduser('~/.cache'))

    return Path(base) / 'tsam' / 'logs'
