"""
Logging setup for Ballot QA runs.

Console output goes to stderr so that commands printing JSON on stdout stay
pipeable. A run can additionally keep a timestamped log file next to the
ballots and reports it produced.

Usage:
    from logging_config import setup_logging, get_logger, run_log_path

    setup_logging(level="INFO", log_file=run_log_path("qa-output"))

    logger = get_logger(__name__)
    with LogContext(logger, "Marking ballot", ballot_style="1_en"):
        ...
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RUN_LOG_PREFIX = "ballot-qa"

# PDF libraries log per-object detail at INFO and below
QUIET_LOGGERS = ("pypdf", "reportlab")


def run_log_path(output_dir: str, started: Optional[datetime] = None) -> Path:
    """
    Path of the log file for a run started at ``started`` (default: now).

    Example: qa-output/ballot-qa-20261103-074500.log
    """
    started = started or datetime.now()
    return Path(output_dir) / f"{RUN_LOG_PREFIX}-{started:%Y%m%d-%H%M%S}.log"


def setup_logging(level: str = None, log_file: str = None) -> Optional[Path]:
    """
    Configure the root logger.

    Args:
        level: Log level name. Defaults to env var LOG_LEVEL or INFO.
        log_file: Optional log file. Missing parent directories are created.

    Returns:
        The log file path, or None when logging to the console only
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")

    level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_path = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Context manager that logs start, completion and failure of a step.

    Keyword details are appended to every message, e.g.
    ``Completed: Marking ballot [ballot_style=1_en] (250ms)``.
    """

    def __init__(self, logger: logging.Logger, operation: str, **details):
        self.logger = logger
        self.operation = operation
        if details:
            rendered = " ".join(f"{key}={value}" for key, value in details.items())
            self.operation = f"{operation} [{rendered}]"
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation} ({format_duration(elapsed)})")
        else:
            self.logger.error(f"Failed: {self.operation} ({format_duration(elapsed)}) - {exc_val}")
        return False


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as a short human-readable string."""
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {int(seconds % 60)}s"


if not logging.getLogger().handlers:
    setup_logging()
