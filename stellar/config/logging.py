"""Logging configuration and utilities using Loguru.

This module provides centralized logging setup for Stellar, including
structured logging with Loguru and integration with the standard library
loggers used by httpx.

Public API:
----------
setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

get_logger(name: str) -> Logger
    Get a context-aware logger for your module
    Usage: logger = get_logger(__name__)

log_startup_info() -> None
    Log provider configuration at startup

configure_httpx_logging() -> None
    Forward httpx/httpcore stdlib logs into Loguru
"""

import logging
from pathlib import Path
import sys
from typing import Any

from loguru import logger

from .settings import settings

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def setup_loguru_logger(verbose: bool = False) -> None:
    """Configure Loguru logger for the application.

    Args:
        verbose: Enable verbose logging with debug level and detailed tracebacks

    Note:
        - Removes default logger and sets up console and file handlers
        - Console format is colorized and simplified
        - File format is JSON structured, rotated and retained automatically
    """
    logger.remove()

    log_file_path = Path(settings.logging.log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    # Add contextual info to all log records
    logger.configure(extra={"service": "stellar", "module": "root"})

    # -------------------------------------------------------------------------
    # Console Handler
    # -------------------------------------------------------------------------
    console_level = "DEBUG" if verbose else settings.logging.console_level
    logger.add(
        sink=sys.stderr,
        level=console_level,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[service]}</cyan>:<cyan>{function}</cyan>:"
            "<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )

    # -------------------------------------------------------------------------
    # File Handler
    # -------------------------------------------------------------------------
    logger.add(
        sink=str(log_file_path),
        level=settings.logging.file_level,
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        backtrace=True,
        diagnose=True,
        enqueue=not settings.logging.real_time_debug,
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

    Example:
        ```python
        logger = get_logger(__name__).bind(service="deezer")
        logger.warning("Search failed", query="boris")
        ```
    """
    return logger.bind(
        module=name,
        service="stellar",
    )


# =============================================================================
# STARTUP LOGGING
# =============================================================================


def log_startup_info() -> None:
    """Log provider configuration on startup."""
    local_logger = get_logger(__name__)

    local_logger.debug("Configuration:")
    for section_name, section_values in settings.model_dump().items():
        local_logger.debug("  {}:", section_name.upper())
        for key, value in section_values.items():
            if "key" in key and value:
                value = "***"
            local_logger.debug("    {}: {}", key.upper(), value)

    if not settings.api.lastfm_api_key:
        local_logger.debug(
            "No Last.fm API key configured, relying on proxy at {}",
            settings.api.lastfm_base_url,
        )


# =============================================================================
# THIRD-PARTY LOGGING INTEGRATION
# =============================================================================


def configure_httpx_logging() -> None:
    """Forward httpx and httpcore logs to Loguru.

    Note:
        - Creates a bridge between Python's logging and Loguru
        - Preserves the originating logger name as module context
        - Disables propagation to prevent duplicate logs
    """

    class HttpxLoguruHandler(logging.Handler):
        def emit(self, record):
            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            logger.bind(module=record.name, service="http").log(
                level, self.format(record)
            )

    for name in ("httpx", "httpcore"):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [HttpxLoguruHandler()]
        stdlib_logger.propagate = False
