"""Logging configuration and utilities using Loguru.

This module provides centralized logging setup for likesync, including
structured logging with Loguru and an error handling decorator for
external API calls.

Public API:
----------
setup_loguru_logger(config: LoggingConfig, verbose: bool = False) -> None
    Configure Loguru logger for the application

get_logger(name: str) -> Logger
    Get a context-aware logger for your module
    Usage: logger = get_logger(__name__)

@resilient_operation(operation_name: str)
    Decorator for handling errors in external API calls
    Usage: @resilient_operation("spotify_remove_tracks")
"""

import functools
from pathlib import Path
import sys
from typing import Any

from loguru import logger

from .settings import LoggingConfig

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def setup_loguru_logger(config: LoggingConfig, verbose: bool = False) -> None:
    """Configure Loguru logger for the application.

    Args:
        config: Logging section of the process settings
        verbose: Enable verbose logging with debug level and detailed tracebacks

    Note:
        - Removes default logger and sets up console and file handlers
        - Console format is colorized and simplified
        - File format is JSON structured, rotated and retained
    """
    logger.remove()

    log_file_path = Path(config.log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.configure(extra={"service": "likesync", "module": "root"})

    # -------------------------------------------------------------------------
    # Console Handler
    # -------------------------------------------------------------------------
    console_level = "DEBUG" if verbose else config.console_level
    logger.add(
        sink=sys.stderr,
        level=console_level,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[module]}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )

    # -------------------------------------------------------------------------
    # File Handler
    # -------------------------------------------------------------------------
    # diagnose stays off: variable dumps would put tokens in the log file
    logger.add(
        sink=str(log_file_path),
        level=config.file_level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[service]} | {extra[module]} | {name}:{function}:{line} | {message}",
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        backtrace=True,
        diagnose=False,
        catch=True,
        serialize=True,
    )


# =============================================================================
# LOGGER FACTORY
# =============================================================================


def get_logger(name: str) -> Any:  # Use Any for Loguru logger type
    """Get a pre-configured logger instance for the given module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Loguru logger bound with module and service context
    """
    return logger.bind(
        module=name,
        service="likesync",
    )


# =============================================================================
# ERROR HANDLING DECORATORS
# =============================================================================


def resilient_operation(operation_name=None):
    """Decorator for service boundary operations with standardized error logging.

    Use on external API calls so failures are logged once, with the operation
    name, at the boundary where they happen. The exception is always re-raised.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        >>> @resilient_operation("github_put_secret")
        >>> async def put_secret(self, repository, secret_name, payload):
        >>>     ...
    """

    def decorator(func):
        op_name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.bind(module=func.__module__).error(f"Error in {op_name}: {e!s}")
                raise

        return wrapper

    return decorator
