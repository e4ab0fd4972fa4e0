"""
Logging infrastructure for CareerPal.

Loguru writes colored output to stderr and, unless disabled, a rotating
log file. Call ``setup_logging`` once at process start; library code only
binds named loggers.
"""

import sys
from typing import Any, Optional

from loguru import logger

from careerpal.utils.config import LoggingSettings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan> | "
    "<level>{message}</level>"
)


def _add_console_sink(level: str, diagnose: bool) -> None:
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=diagnose,
    )


def _add_file_sink(log_settings: LoggingSettings, level: str, diagnose: bool) -> None:
    log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_settings.file_path,
        format=log_settings.format,
        level=level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        backtrace=True,
        diagnose=diagnose,
        enqueue=True,
    )


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Overrides ``LOG_LEVEL`` for this process (e.g. ``"DEBUG"``
            for ``careerpal --verbose``).
    """
    settings = get_settings()
    log_settings = settings.logging
    level = level or log_settings.level

    logger.remove()
    logger.configure(extra={"name": "careerpal"})

    # diagnose prints local variables, which may include CV text
    diagnose = settings.debug and settings.environment == "development"

    if log_settings.console_output:
        _add_console_sink(level, diagnose)
    if log_settings.file_output:
        _add_file_sink(log_settings, level, diagnose)

    logger.debug(f"Logging initialized - Level: {level}")


def get_logger(name: str) -> Any:
    """Return a logger bound to ``name`` (typically ``__name__``)."""
    return logger.bind(name=name)


class LoggerMixin:
    """
    Gives a class a ``self.logger`` bound to the class name.

    Usage:
        class EmbeddingCache(LoggerMixin):
            async def invalidate(self, ...):
                self.logger.debug("Dropping cached embedding")
    """

    @property
    def logger(self) -> Any:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
