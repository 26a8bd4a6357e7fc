"""Logging setup shared by every registration desk component.

One ``registration_desk`` logger tree, written to a rotating file and the
console with the same format.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "registration_desk"
DEFAULT_LOG_FILE = "registration_desk.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SECRET_PATTERNS = [
    (r"Bearer [a-zA-Z0-9._+/=-]+", "Bearer [REDACTED]"),
    (r"secret=[^&\s]+", "secret=[REDACTED]"),
]


def setup_logging(
    log_dir: str | Path = "logs",
    level: str = "INFO",
    to_file: bool = True,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``registration_desk`` logger.

    Args:
        log_dir: Directory for the rotating log file. Created if missing.
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        to_file: Whether to write ``registration_desk.log`` under ``log_dir``.
        console: Whether to also log to the console.

    Returns:
        The root registration desk logger.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if to_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / DEFAULT_LOG_FILE,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # googleapiclient logs every discovery cache miss at WARNING
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    logger.info("Logging initialized (level=%s, file=%s)", level, to_file)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("sheets")``."""
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def sanitize_for_log(text: str) -> str:
    """Redact bearer tokens and secrets before they reach a log line."""
    result = text
    for pattern, replacement in _SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result)
    return result
