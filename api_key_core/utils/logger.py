"""
Logging helpers for the API Key Core package.

Console logs go through ContextAwareLogger, which appends ``extra``
attributes to the message as pipe-delimited ``key=value`` pairs while
still passing them to the handlers as record attributes.
"""

import logging
import sys
from typing import Optional, Union

from ..config import get_config

_package_logger = None


class ContextAwareLogger:
    """
    Logger wrapper that formats extra attributes in message while preserving them.

    This keeps extras visible in console output even when a host application
    installs its own formatter.
    """

    def __init__(self, logger):
        """Initialize with an existing logger."""
        self.logger = logger

    def _log_with_formatted_extra(self, level, msg, **kwargs):
        """
        Log with extra data formatted into the message.

        Args:
            level: Logging level method to use
            msg: Log message
            **kwargs: Additional arguments including 'extra'
        """
        extra = kwargs.pop("extra", {})

        if extra:
            extra_str = " | ".join([f"{k}={v}" for k, v in extra.items()])
            full_msg = f"{msg} | {extra_str}"
        else:
            full_msg = msg

        log_method = getattr(self.logger, level)
        log_method(full_msg, extra=extra)

    def set_level(self, level):
        """Set the logging level of the underlying logger."""
        self.logger.setLevel(level)

    def info(self, msg, **kwargs):
        """Log at INFO level with formatted extra."""
        self._log_with_formatted_extra("info", msg, **kwargs)

    def error(self, msg, **kwargs):
        """Log at ERROR level with formatted extra."""
        self._log_with_formatted_extra("error", msg, **kwargs)

    def warning(self, msg, **kwargs):
        """Log at WARNING level with formatted extra."""
        self._log_with_formatted_extra("warning", msg, **kwargs)

    def debug(self, msg, **kwargs):
        """Log at DEBUG level with formatted extra."""
        self._log_with_formatted_extra("debug", msg, **kwargs)


def _resolve_level(log_level: Optional[Union[int, str]]) -> int:
    if log_level is None:
        log_level = get_config().logging.level
    if isinstance(log_level, str):
        return getattr(logging, log_level.upper(), logging.INFO)
    return log_level


def configure_logging(
    name: str = "api_key_core",
    log_level: Optional[Union[int, str]] = None,
) -> ContextAwareLogger:
    """
    Configure a named package logger with console output.

    Args:
        name: Logger name
        log_level: Logging level (default: from config.logging.level)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _package_logger

    level = _resolve_level(log_level)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(get_config().logging.format))
    logger.addHandler(console_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.debug("Package logger configured", extra={"logger_name": name})

    _package_logger = wrapped_logger
    return wrapped_logger


def get_logger() -> ContextAwareLogger:
    """
    Get the package logger.

    Returns the logger installed by configure_logging(), or a wrapper around
    the ``api_key_core`` logger that defers to the host's logging setup.
    """
    if _package_logger is not None:
        return _package_logger

    return ContextAwareLogger(logging.getLogger("api_key_core"))


def reset_logging() -> None:
    """Forget the logger installed by configure_logging()."""
    global _package_logger
    _package_logger = None
