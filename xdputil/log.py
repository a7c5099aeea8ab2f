"""Level-filtered logging to standard error."""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import Callable


class LogLevel(IntEnum):
    """Logging levels; library messages are demoted by one level."""

    WARN = 0
    INFO = 1
    DEBUG = 2
    VERBOSE = 3


LibPrinter = Callable[[int, str], int]

_log_level: LogLevel = LogLevel.INFO


def _print(level: int, indent: int, message: str) -> int:
    if level > _log_level:
        return 0
    text = " " * indent + message
    sys.stderr.write(text)
    return len(text)


def _lib_print_func(level: int, message: str) -> int:
    return _print(level + 1, 1, message)


def _lib_silent_func(level: int, message: str) -> int:
    return 0


_lib_printer: LibPrinter = _lib_print_func


def _set_lib_printer(printer: LibPrinter) -> LibPrinter:
    global _lib_printer
    old = _lib_printer
    _lib_printer = printer
    return old


def log_print(level: int, message: str) -> int:
    """Write ``message`` to stderr if ``level`` is enabled; return chars written."""
    return _print(level, 0, message)


def pr_warn(message: str) -> int:
    return log_print(LogLevel.WARN, message)


def pr_info(message: str) -> int:
    return log_print(LogLevel.INFO, message)


def pr_debug(message: str) -> int:
    return log_print(LogLevel.DEBUG, message)


def lib_print(level: int, message: str) -> int:
    """Log a message from the XDP library, demoted by one level and indented."""
    return _lib_printer(level, message)


def init_lib_logging() -> LibPrinter:
    """Route library messages through this module's log level.

    Returns the library printer that was installed before.
    """
    return _set_lib_printer(_lib_print_func)


def silence_lib_logging() -> None:
    """Drop library messages unless verbose logging is on."""
    if _log_level < LogLevel.VERBOSE:
        _set_lib_printer(_lib_silent_func)


def get_log_level() -> LogLevel:
    return _log_level


def set_log_level(level: int) -> LogLevel:
    """Set the level and return the previous one."""
    global _log_level
    old = _log_level
    _log_level = LogLevel(level)
    return old


def increase_log_level() -> LogLevel:
    """Raise the level by one step, up to VERBOSE, and return it."""
    global _log_level
    if _log_level < LogLevel.VERBOSE:
        _log_level = LogLevel(_log_level + 1)
    return _log_level