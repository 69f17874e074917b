"""
ElectionTrends - Logging Configuration

Centralized logging setup: console output for operators, rotating file
output with full call-site detail for troubleshooting imports and searches.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union


CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Application loggers that follow the requested level
APP_MODULES = (
    "election_trends.aggregators",
    "election_trends.api",
    "election_trends.dashboard",
    "election_trends.filters",
    "election_trends.importers",
    "election_trends.store",
)

# Chatty dependencies held at WARNING
NOISY_LIBRARIES = (
    "aiohttp",
    "redis",
    "urllib3",
    "werkzeug",
)


def resolve_level(level: Union[int, str]) -> int:
    """
    Convert a level name (e.g. "debug") or number into a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = "election_trends.log",
    log_dir: Path = Path("data/logs")
) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Console / application logging level (number or name)
        log_file: Log file name inside log_dir; None disables file output
        log_dir: Directory for log files

    Returns:
        Root logger instance
    """
    numeric_level = resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for module in APP_MODULES:
        logging.getLogger(module).setLevel(numeric_level)

    for library in NOISY_LIBRARIES:
        logging.getLogger(library).setLevel(logging.WARNING)

    return root_logger


class LogContext:
    """
    Context manager that temporarily changes one logger's level.

    Example:
        with LogContext("election_trends.aggregators", logging.DEBUG):
            aggregator.aggregate(observations, query_filter, group_by)
    """

    def __init__(self, logger_name: str, level: Union[int, str]):
        self.logger = logging.getLogger(logger_name)
        self.new_level = resolve_level(level)
        self.original_level = logging.NOTSET

    def __enter__(self) -> logging.Logger:
        self.original_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.logger.setLevel(self.original_level)
        return False
