"""
Logging utilities for PlantPro
"""

import sys
from pathlib import Path
from loguru import logger
from typing import Optional

from plantpro.api.config import settings


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_file: str = "plantpro.log",
    rotation: str = "10 MB",
    retention: str = "30 days",
    serialize: bool = False,
    enable_file: Optional[bool] = None
):
    """
    Set up logging configuration for the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            defaults to LOG_LEVEL from settings
        log_dir: Directory to store log files, defaults to LOG_DIR from
            settings and then logs/
        log_file: Name of the log file
        rotation: When to rotate the log file (e.g., "10 MB", "1 day")
        retention: How long to keep old log files
        serialize: Whether to serialize logs as JSON
        enable_file: Whether to add the rotating file sink at all, defaults
            to LOG_TO_FILE from settings
    """
    # Remove default logger
    logger.remove()

    level = (log_level or settings.LOG_LEVEL).upper()
    log_dir = log_dir or settings.LOG_DIR
    if enable_file is None:
        enable_file = settings.LOG_TO_FILE

    # Console logging with colors
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True
    )

    if not enable_file:
        logger.info(f"Logging initialized - Level: {level}, file sink disabled")
        return logger

    # File logging, logs/ under the working directory unless configured
    directory = Path(log_dir) if log_dir else Path.cwd() / "logs"
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / log_file

    logger.add(
        log_path,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression="zip",
        serialize=serialize
    )

    logger.info(f"Logging initialized - Level: {level}, Log file: {log_path}")

    return logger


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance

    Args:
        name: Optional logger name (for context)

    Returns:
        Loguru logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger
