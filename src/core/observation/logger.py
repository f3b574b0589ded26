"""
Logging helpers shared by every layer.

Modules grab a named logger at import time:

    from core.observation.logger import get_logger

    logger = get_logger(__name__)

Entry points (scripts, services, notebooks) call ``setup_logger`` once to
attach a Rich console handler and, optionally, a plain file handler.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "kanban_insight"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_level() -> int:
    """Resolve the log level from the LOG_LEVEL env var (default INFO)."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        return logging.INFO
    return level


def setup_logger(
    log_file: Optional[Path] = None,
    level: Optional[int] = None,
    name: str = ROOT_LOGGER_NAME,
) -> logging.Logger:
    """
    Configure the project logger.

    Args:
        log_file: Optional path of a log file (parent dirs are created)
        level: Log level, defaults to LOG_LEVEL env var
        name: Logger name to configure

    Returns:
        The configured Logger instance
    """
    if level is None:
        level = get_log_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Re-running setup must not stack handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger nested under the project root logger.

    ``get_logger("insight_layer.batch_planner")`` yields
    ``kanban_insight.insight_layer.batch_planner`` so that a single
    ``setup_logger`` call controls every module.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
