"""
================================================================================
stepchain Common Utilities
================================================================================

Shared configuration and logging setup for the framework.

Exports:
    - ConfigLoader: Singleton configuration manager
    - get_config: Convenience function to get configuration values
    - init_logger: Initialize the loguru logger with standard settings

Usage:
    from stepchain.common import get_config, init_logger

    init_logger()
    timeout = get_config("recorder.step_timeout", 30.0)

================================================================================
"""

import os
import sys
from typing import Optional

from loguru import logger

from .config_loader import ConfigLoader, get_config

_logger_initialized: bool = False

DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initializes the loguru logger with standard configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Custom format string. Defaults to config value.
        log_file: Optional file path for persistent logs.
        force: Re-initialize even if already done.

    Example:
        init_logger(level="DEBUG", log_file="logs/steps.log")
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    logger.remove()

    level = level or get_config("logging.level", "INFO")
    format_string = format_string or get_config("logging.format", DEFAULT_LOG_FORMAT)

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


__all__ = [
    "ConfigLoader",
    "get_config",
    "init_logger",
]
