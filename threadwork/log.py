"""Levelled, coloured logging to standard error."""

from __future__ import annotations

import enum
import os
import sys
from collections.abc import Mapping
from datetime import datetime


class LogLevel(enum.IntEnum):
    OFF = -1
    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3
    TRACE = 4


DEFAULT_LEVEL = LogLevel.INFO
ENV_VAR = "PROXY_LOG"

COLOR_DEFAULT = "\x1b[39m"
COLOR_RED = "\x1b[31m"
COLOR_YELLOW = "\x1b[33m"
COLOR_CYAN = "\x1b[36m"
COLOR_MAGENTA = "\x1b[35m"

_LABELS = {
    LogLevel.ERROR: "ERROR",
    LogLevel.WARN: "WARN ",
    LogLevel.INFO: "INFO ",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.TRACE: "TRACE",
}

_COLORS = {
    LogLevel.ERROR: COLOR_RED,
    LogLevel.WARN: COLOR_YELLOW,
    LogLevel.INFO: COLOR_DEFAULT,
    LogLevel.DEBUG: COLOR_CYAN,
    LogLevel.TRACE: COLOR_MAGENTA,
}

_level = DEFAULT_LEVEL


def set_level(level: LogLevel) -> None:
    """Set the most verbose level that is written."""
    global _level
    _level = LogLevel(level)


def get_level() -> LogLevel:
    return _level


def init_logger(environ: Mapping[str, str] | None = None) -> LogLevel:
    """Set the level from ``PROXY_LOG``; unknown names leave it unchanged."""
    env = os.environ if environ is None else environ
    name = env.get(ENV_VAR)
    if name is not None:
        try:
            set_level(LogLevel[name.upper()])
        except KeyError:
            pass
    return get_level()


def format_line(level: LogLevel, message: str, now: datetime | None = None) -> str:
    """Build one log line: timestamp, coloured label, message."""
    level = LogLevel(level)
    if level is LogLevel.OFF:
        raise ValueError("cannot format a message at level OFF")
    stamp = (now or datetime.now()).strftime("[%d/%m/%y %H:%M:%S]")
    return f"{stamp} {_COLORS[level]}{_LABELS[level]}{COLOR_DEFAULT} {message}"


def log(level: LogLevel, message: str) -> None:
    """Write ``message`` to standard error if ``level`` is enabled."""
    if _level >= level:
        sys.stderr.write(format_line(level, message) + "\n")


def log_error(message: str) -> None:
    log(LogLevel.ERROR, message)


def log_warn(message: str) -> None:
    log(LogLevel.WARN, message)


def log_info(message: str) -> None:
    log(LogLevel.INFO, message)


def log_debug(message: str) -> None:
    log(LogLevel.DEBUG, message)


def log_trace(message: str) -> None:
    log(LogLevel.TRACE, message)