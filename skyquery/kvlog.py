"""Leveled logger taking key/value argument lists."""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Mapping

from .logsetup import FIELDS_ATTR, TRACE
from .textutil import to_map


class Level(IntEnum):
    """Log levels; a logger emits messages at or above its own level."""

    TRACE = -1
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    NO_LEVEL = 6


_STDLIB_LEVELS = {
    Level.TRACE: TRACE,
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


class KVLogger:
    """Writes messages with ``key, value, ...`` arguments as structured fields."""

    def __init__(
        self,
        logger: logging.Logger,
        name: str = "",
        level: Level = Level.DEBUG,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        self.logger = logger
        self.name = name
        self.level = Level(level)
        self.fields = dict(fields or {})

    def _emit(self, level: Level, msg: str, args: tuple[Any, ...]) -> None:
        if level < self.level:
            return
        fields = {**self.fields, **to_map(args)}
        self.logger.log(_STDLIB_LEVELS[level], msg, extra={FIELDS_ATTR: fields})

    def log(self, level: Level, msg: str, *args: Any) -> None:
        level = Level(level)
        if level == Level.NO_LEVEL:
            return
        self._emit(level, msg, args)

    def trace(self, msg: str, *args: Any) -> None:
        self._emit(Level.TRACE, msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        self._emit(Level.DEBUG, msg, args)

    def info(self, msg: str, *args: Any) -> None:
        self._emit(Level.INFO, msg, args)

    def warn(self, msg: str, *args: Any) -> None:
        self._emit(Level.WARN, msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._emit(Level.ERROR, msg, args)

    def is_trace(self) -> bool:
        return self.level <= Level.TRACE

    def is_debug(self) -> bool:
        return self.level <= Level.DEBUG

    def is_info(self) -> bool:
        return self.level <= Level.INFO

    def is_warn(self) -> bool:
        return self.level <= Level.WARN

    def is_error(self) -> bool:
        return self.level <= Level.ERROR

    def with_args(self, *args: Any) -> "KVLogger":
        """Return a logger that adds these key/value fields to every message."""
        return KVLogger(self.logger, self.name, self.level, {**self.fields, **to_map(args)})

    def named(self, name: str) -> "KVLogger":
        return KVLogger(self.logger, name, self.level, self.fields)

    def set_level(self, level: Level) -> None:
        self.level = Level(level)