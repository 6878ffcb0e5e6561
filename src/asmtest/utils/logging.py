"""Logging configuration for asmtest.

Provides colorized console logging for local runs and JSON output for
CI log collectors.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Any

from loguru import logger


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_output: bool = False,
    rich_traceback: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        json_output: If True, output logs in JSON format
        rich_traceback: If True, include variable values in tracebacks
    """
    logger.remove()

    if json_output:
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            serialize=True,
        )
    else:
        console_format = (
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
            "<level>{message}</level>"
        )
        logger.add(
            sys.stderr,
            format=console_format,
            level=level,
            colorize=True,
            backtrace=rich_traceback,
            diagnose=rich_traceback,
        )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
        )


def get_logger(name: str) -> Any:
    """Get a logger instance with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Logger instance configured for the module
    """
    return logger.bind(name=name)


class LogContext:
    """Context manager for adding contextual information to logs.

    Example:
        with LogContext(revision="x86_64"):
            log.info("disassembling")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self._active = False

    def __enter__(self) -> "LogContext":
        logger.configure(extra=self.context)
        self._active = True
        return self

    def __exit__(self, *args: Any) -> None:
        if self._active:
            logger.configure(extra={})
            self._active = False
