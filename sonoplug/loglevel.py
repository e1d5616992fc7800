"""Log level names accepted on the command line."""

from __future__ import annotations

import enum
import json
import logging

LOGGER_NAME = "sonoplug"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class UnknownLevelError(ValueError):
    """The log level name is not one of the known levels."""


class Level(enum.IntEnum):
    """Log levels, from most to least severe."""

    PANIC = logging.CRITICAL + 10
    FATAL = logging.CRITICAL
    ERROR = logging.ERROR
    WARN = logging.WARNING
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = TRACE


def parse_level(name: str) -> Level:
    """Return the Level for one of panic, fatal, error, warn, info, debug or trace."""
    if not isinstance(name, str) or name != name.lower() or name.upper() not in Level.__members__:
        raise UnknownLevelError(f"unknown log level {json.dumps(str(name))}")
    return Level[name.upper()]


def set_level(name: str) -> Level:
    """Set the package logger's level by name and return the level set."""
    level = parse_level(name)
    logging.getLogger(LOGGER_NAME).setLevel(level)
    return level