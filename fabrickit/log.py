"""Minimal leveled logger writing to standard output and standard error."""

from __future__ import annotations

import enum
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime


class LogLevel(enum.IntEnum):
    """Severity of a log message, in increasing order."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


@dataclass
class _LoggerState:
    level: LogLevel = LogLevel.INFO
    timestamps: bool = True
    lock: threading.Lock = field(default_factory=threading.Lock)


_state = _LoggerState()


def initialize() -> None:
    """Reset the logger to its defaults and announce it."""
    with _state.lock:
        _state.level = LogLevel.INFO
        _state.timestamps = True
    info("Logger initialized")


def set_log_level(level: LogLevel) -> None:
    """Set the minimum level that will be emitted."""
    with _state.lock:
        _state.level = LogLevel(level)


def log_level() -> LogLevel:
    """Return the minimum level currently emitted."""
    return _state.level


def enable_timestamps(enable: bool) -> None:
    """Turn timestamp prefixes on or off."""
    with _state.lock:
        _state.timestamps = bool(enable)


def debug(message: str) -> None:
    log(LogLevel.DEBUG, message)


def info(message: str) -> None:
    log(LogLevel.INFO, message)


def warning(message: str) -> None:
    log(LogLevel.WARNING, message)


def error(message: str) -> None:
    log(LogLevel.ERROR, message)


def critical(message: str) -> None:
    log(LogLevel.CRITICAL, message)


def log(level: LogLevel, message: str) -> None:
    """Emit ``message`` if ``level`` is at or above the current level.

    Errors and critical messages go to standard error, the rest to
    standard output.
    """
    level = LogLevel(level)
    if level < _state.level:
        return
    line = format_log_message(level, message)
    stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout
    with _state.lock:
        print(line, file=stream, flush=True)


def format_log_message(level: LogLevel, message: str) -> str:
    """Build the line written for a message, with optional timestamp."""
    prefix = f"{timestamp()} " if _state.timestamps else ""
    return f"{prefix}[{LogLevel(level).name}] {message}"


def timestamp() -> str:
    """Return local time as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    now = datetime.now()
    return f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:03d}"