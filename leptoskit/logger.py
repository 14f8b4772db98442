"""Coloured log output and filtering of dependency log records."""

from __future__ import annotations

import enum
import functools
import logging
import operator
from typing import Iterable, Optional

from .util import pad_left_to, paint

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ERR_RED = 196
WARN_YELLOW = 214
INFO_GREEN = 77
DBG_BLUE = 26
TRACE_VIOLET = 98
GRAY = 241

OWN_TARGET = __name__.partition(".")[0]
_LABEL_WIDTH = 12


class Log(enum.Enum):
    """Optional dependency log sources that can be switched on."""

    WASM = "wasm"
    SERVER = "server"

    @property
    def flag(self) -> int:
        return 0b01 if self is Log.WASM else 0b10


class LogFlag:
    """Set of enabled dependency log sources."""

    __slots__ = ("bits",)

    def __init__(self, logs: Iterable[Log] = ()) -> None:
        self.bits = functools.reduce(operator.or_, (log.flag for log in logs), 0)

    def __repr__(self) -> str:
        return f"LogFlag(bits={self.bits:#04b})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LogFlag) and other.bits == self.bits

    def __hash__(self) -> int:
        return hash(self.bits)

    def is_set(self, log: Log) -> bool:
        return bool(log.flag & self.bits)

    def matches(self, target: str) -> bool:
        server = self.is_set(Log.SERVER) and target.startswith(("hyper", "axum"))
        wasm = self.is_set(Log.WASM) and target.startswith(("wasm", "walrus"))
        return server or wasm


def level_color(level: int) -> int:
    """ANSI 256 colour number for a logging level."""
    if level >= logging.ERROR:
        return ERR_RED
    if level >= logging.WARNING:
        return WARN_YELLOW
    if level >= logging.INFO:
        return INFO_GREEN
    if level >= logging.DEBUG:
        return DBG_BLUE
    return TRACE_VIOLET


def split_message(message: str) -> tuple[str, str]:
    """Split off the leading label word; ``("", message)`` if there is no space."""
    word, sep, rest = message.partition(" ")
    return (word, rest) if sep else ("", message)


def dependency(target: str) -> Optional[str]:
    """Top-level name of a foreign logger, or None for our own or flat names."""
    if target.startswith(OWN_TARGET):
        return None
    head, sep, _ = target.partition(".")
    return head if sep else None


def format_record(level: int, target: str, message: str) -> str:
    """Render one log line with a right-aligned, coloured label."""
    color = level_color(level)
    dep = dependency(target)
    if dep is not None:
        return f"{paint(color, pad_left_to(f'[{dep}]', _LABEL_WIDTH))} {message}"
    word, rest = split_message(message)
    return f"{paint(color, pad_left_to(word, _LABEL_WIDTH))} {rest}"


class LogFilter(logging.Filter):
    """Pass errors, our own records and selected dependency records."""

    def __init__(self, flag: Optional[LogFlag] = None) -> None:
        super().__init__()
        self.flag = flag if flag is not None else LogFlag()

    def filter(self, record: logging.LogRecord) -> bool:
        target = record.name
        return (
            record.levelno >= logging.ERROR
            or target.startswith(OWN_TARGET)
            or self.flag.matches(target)
        )


class LogFormatter(logging.Formatter):
    """Formatter producing the coloured label layout."""

    def format(self, record: logging.LogRecord) -> str:
        line = format_record(record.levelno, record.name, record.getMessage())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_installed: Optional[LogFlag] = None


def setup(verbose: int, logs: Iterable[Log] = ()) -> LogFlag:
    """Install the handler on the root logger once; later calls change nothing."""
    global _installed
    if _installed is None:
        level = {0: logging.INFO, 1: logging.DEBUG}.get(verbose, TRACE)
        flag = LogFlag(logs)
        handler = logging.StreamHandler()
        handler.addFilter(LogFilter(flag))
        handler.setFormatter(LogFormatter())
        root = logging.getLogger()
        root.setLevel(level)
        root.addHandler(handler)
        _installed = flag
    return _installed