"""
Logging setup for the tactician packages.

Library modules only call logging.getLogger(__name__) (or get_logger). Handlers
are attached by configure_logging(), which the application calls once at
startup; importing this module touches neither handlers nor the filesystem.

Usage:
    from config.logging_config import configure_logging
    configure_logging()                       # console + logs/tactician.log
    configure_logging('DEBUG', log_file=None) # console only
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .constants import (
    BASE_DIR, LOG_BACKUP_COUNT, LOG_FILE, LOG_FORMAT,
    LOG_LEVEL, LOG_MAX_SIZE_MB, LOGGED_PACKAGES,
)

# Handlers installed here carry this prefix so a second call can replace them
HANDLER_PREFIX = 'tactician.'


def configure_logging(
    level: Union[str, int] = LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = BASE_DIR / LOG_FILE,
    packages: Iterable[str] = LOGGED_PACKAGES,
) -> List[logging.Handler]:
    """
    Attach console and rotating-file handlers to the package loggers.

    Calling it again replaces the handlers from the previous call. A relative
    log_file resolves against the project root; None disables file logging.

    Returns:
        The installed handlers
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.set_name(HANDLER_PREFIX + 'console')
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    handlers = [console]

    if log_file is not None:
        path = Path(log_file)
        if not path.is_absolute():
            path = BASE_DIR / path
        path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8',
        )
        file_handler.set_name(HANDLER_PREFIX + 'file')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in packages:
        logger = logging.getLogger(name)
        _remove_installed_handlers(logger)
        logger.setLevel(level)
        for handler in handlers:
            logger.addHandler(handler)

    return handlers


def _remove_installed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if (handler.get_name() or '').startswith(HANDLER_PREFIX):
            logger.removeHandler(handler)
            handler.close()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger; defaults to the 'tactician' package logger."""
    return logging.getLogger(name or 'tactician')
