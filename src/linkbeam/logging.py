"""Logging configuration for the LinkBeam relay.

Everything logs through the ``linkbeam`` logger tree. aiohttp's server
loggers share its handlers at WARNING so handler crashes are visible. The
access log is left unconfigured: request paths carry full session IDs.
"""

import logging
from pathlib import Path

from linkbeam.config import Config

LOGGER_NAME = "linkbeam"

# 2025-01-27 10:30:45 [INFO] message
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

AIOHTTP_LOGGERS = ("aiohttp.server", "aiohttp.web")

_logger: logging.Logger | None = None
_handlers: list[logging.Handler] = []


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handlers(config: Config) -> list[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(config: Config) -> logging.Logger:
    """Configure relay logging once per process.

    Later calls return the existing logger unchanged.

    Args:
        config: Configuration with ``log_level`` and ``log_file``.

    Returns:
        The ``linkbeam`` logger.
    """
    global _logger

    if _logger is not None:
        return _logger

    _handlers.extend(_build_handlers(config))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_parse_level(config.log_level))
    logger.handlers = list(_handlers)
    logger.propagate = False

    for name in AIOHTTP_LOGGERS:
        aiohttp_logger = logging.getLogger(name)
        aiohttp_logger.setLevel(logging.WARNING)
        aiohttp_logger.handlers = list(_handlers)
        aiohttp_logger.propagate = False

    _logger = logger
    return logger


def reset_logging() -> None:
    """Detach and close every handler installed by ``setup_logging``."""
    global _logger

    for name in (LOGGER_NAME, *AIOHTTP_LOGGERS):
        target = logging.getLogger(name)
        for handler in _handlers:
            target.removeHandler(handler)
        if name in AIOHTTP_LOGGERS:
            target.propagate = True

    for handler in _handlers:
        handler.close()
    _handlers.clear()
    _logger = None
