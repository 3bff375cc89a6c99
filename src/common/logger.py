"""
Logging setup for the kiosk rotation controller.
All module loggers hang off the "kiosk" root so one handler serves them all.
"""

import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER_NAME = "kiosk"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler_installed = False


def _level_from_env() -> int:
    """Level named by KIOSK_LOG_LEVEL; INFO when unset or not a level name."""
    name = os.environ.get("KIOSK_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        sys.stderr.write(f"Unknown KIOSK_LOG_LEVEL {name!r}; using INFO\n")
        return logging.INFO
    return level


def _install_handler() -> None:
    """Attach the stream handler to the kiosk root logger (once)."""
    global _handler_installed

    if _handler_installed:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(_level_from_env())
    _handler_installed = True


def setup_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger that propagates to the kiosk root logger
    """
    _install_handler()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Set the level of the kiosk root logger.

    Unknown level names are reported and leave the current level in place.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or number. None keeps current.
    """
    _install_handler()

    if level is None:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = level.strip().upper()

    try:
        root.setLevel(level)
    except (TypeError, ValueError):
        root.warning("Unknown log level %r; keeping %s", level, logging.getLevelName(root.level))
