"""Logging configuration for the command-line tool."""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the ``time_ledger`` logger.

    Console records go to stderr through rich; a log file, when given, gets
    every record at the configured level in plain text.

    Args:
        level: Level name such as "INFO" or "DEBUG"
        log_file: Optional file to append records to
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("time_ledger")
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True), show_path=False, rich_tracebacks=True
    )
    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
