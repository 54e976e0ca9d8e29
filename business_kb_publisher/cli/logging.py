"""
Logging utilities for business_kb_publisher scripts.

Provides logging setup and header printing functions with tqdm compatibility.
"""

import logging
import sys
import time
from pathlib import Path

from business_kb_publisher.utils.tqdm_logging import TqdmLoggingHandler

# Third-party loggers that clutter console output
NOISY_LOGGERS = ("urllib3", "requests", "tldextract", "filelock")


class FlushingFileHandler(logging.FileHandler):
    """File handler that flushes after every record."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(
    script_name: str,
    execute: bool = False,
    log_dir: Path = Path("logs"),
    tqdm_compatible: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """
    Set up logging for a script.

    Args:
        script_name: Name of the script (for log file naming)
        execute: If True, log to file + console. If False, only console.
        log_dir: Directory for log files
        tqdm_compatible: If True, use TqdmLoggingHandler for clean progress bar output
        verbose: Show DEBUG messages on the console

    Returns:
        Configured logger instance
    """
    console_level = logging.DEBUG if verbose else logging.INFO

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.ERROR)

    if not execute:
        logging.basicConfig(level=console_level, format="%(message)s", stream=sys.stdout)
        return logging.getLogger(script_name)

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"{script_name}_{timestamp}.log"

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers = []

    # File: everything, with timestamps
    file_handler = FlushingFileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    console_formatter = logging.Formatter("%(message)s")
    if tqdm_compatible:
        console_handler = TqdmLoggingHandler(level=console_level)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.propagate = False

    # Package loggers: all levels to file, warnings and errors to console
    pkg_logger = logging.getLogger("business_kb_publisher")
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.handlers = []
    pkg_logger.addHandler(file_handler)
    pkg_console_handler = (
        TqdmLoggingHandler() if tqdm_compatible else logging.StreamHandler(sys.stderr)
    )
    pkg_console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    pkg_console_handler.setFormatter(console_formatter)
    pkg_logger.addHandler(pkg_console_handler)
    pkg_logger.propagate = False

    logger.info(f"Log file: {log_file}")
    return logger


def print_dry_run_header(title: str, logger: logging.Logger | None = None):
    """Print a standard dry-run header."""
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info(f"{title} (Dry Run)")
    logger.info("=" * 70)


def print_execute_header(title: str, logger: logging.Logger | None = None):
    """Print a standard execute mode header."""
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info(title)
    logger.info("=" * 70)
