"""Centralized logging configuration for image utilities."""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER = "image-utilities"

_FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(threadName)s | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Set by set_level(); wins over LOG_LEVEL for library loggers
_level_override: Optional[int] = None


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _in_namespace(name: str) -> bool:
    return name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}.")


def setup_logger(
    name: str = ROOT_LOGGER,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Setup centralized logging with environment variable configuration.

    A logger is configured once. Later calls for the same name return it
    unchanged unless ``level`` is given, so workers calling ``get_logger``
    never undo a level chosen by the CLI or the plugin settings.

    Args:
        name: Logger name (defaults to "image-utilities")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple")
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(_resolve_level(level))

    if logger.handlers:
        return logger

    if not level:
        if _level_override is not None and _in_namespace(name):
            logger.setLevel(_level_override)
        else:
            logger.setLevel(_resolve_level(os.getenv("LOG_LEVEL", "INFO")))

    handler = logging.StreamHandler(sys.stdout)
    env_format = os.getenv("LOG_FORMAT", format_type).lower()
    handler.setFormatter(
        logging.Formatter(
            _FORMATS.get(env_format, _FORMATS["simple"]),
            datefmt="%Y-%m-%d %H:%M:%S" if env_format == "structured" else None,
        )
    )
    logger.addHandler(handler)

    # Each library logger owns its handler
    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Child names are namespaced under "image-utilities" so that one
    ``set_level`` call or LOG_LEVEL applies to the whole library.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    if not _in_namespace(name):
        name = f"{ROOT_LOGGER}.{name}"
    return setup_logger(name)


def set_level(level: str) -> None:
    """Set the level of every library logger, including ones created later."""
    global _level_override
    _level_override = _resolve_level(level)
    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(existing, logging.Logger) and _in_namespace(name):
            existing.setLevel(_level_override)


logger = setup_logger()
