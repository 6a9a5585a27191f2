"""Logging setup for command-line runs."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "primefold"


def setup_logger(log_path: Path | None = None, verbose: bool = False) -> logging.Logger:
    """Configure the package logger to write to the console and optionally a file.

    Library modules log through ``logging.getLogger(__name__)``, so they
    all propagate to the ``primefold`` logger configured here.

    Args:
        log_path: File that receives every record (DEBUG and up).
        verbose: Show DEBUG records on the console as well.

    Returns:
        The configured ``primefold`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_path is not None:
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    return logger
