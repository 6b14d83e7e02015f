"""Process-wide logging setup: console, JSON and rolling-file output."""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, TextIO

from .config import LoggingConfig

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOGGER_NAME = "skyquery"
FIELDS_ATTR = "fields"
DEFAULT_LOG_FILENAME = "cloudquery.log"
DEFAULT_MAX_SIZE_MB = 100
# Zero backups means "keep every rolled file"; capped to keep rollover cheap.
_KEEP_ALL_BACKUPS = 1000

_RESET = "\x1b[0m"
_INFO_COLOR = "34"
_LEVEL_STYLES = {
    "trace": ("35", "TRC"),
    "debug": ("36", "DBG"),
    "info": (_INFO_COLOR, "INF"),
    "warn": ("33", "WRN"),
    "error": ("31", "ERR"),
    "fatal": ("31", "FTL"),
    "panic": ("31;1", "PNC"),
}
_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


def _colorize(code: str, no_color: bool, text: str) -> str:
    if no_color:
        return text
    return f"\x1b[{code}m{text}{_RESET}"


def format_level(level: Any, no_color: bool) -> str:
    """Turn a level name into the three-letter, optionally coloured, console tag."""
    if isinstance(level, str):
        code, tag = _LEVEL_STYLES.get(level, (_INFO_COLOR, "???"))
        return _colorize(code, no_color, tag)
    if level is None:
        return _colorize(_INFO_COLOR, no_color, "???")
    return str(level).upper()[:3]


def _level_name(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelno, record.levelname.lower())


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return dict(getattr(record, FIELDS_ATTR, None) or {})


def _console_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class _ConsoleFormatter(logging.Formatter):
    def __init__(self, no_color: bool) -> None:
        super().__init__()
        self.no_color = no_color

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%I:%M%p").lstrip("0")
        parts = [stamp, format_level(_level_name(record), self.no_color)]
        message = record.getMessage()
        if message:
            parts.append(message)
        fields = _record_fields(record)
        parts.extend(f"{k}={_console_value(fields[k])}" for k in sorted(fields))
        return " ".join(parts)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {"level": _level_name(record)}
        entry.update(_record_fields(record))
        entry["time"] = datetime.fromtimestamp(record.created).astimezone().isoformat()
        entry["message"] = record.getMessage()
        return json.dumps(entry, default=str)


class _InstanceFilter(logging.Filter):
    def __init__(self, instance_id: str) -> None:
        super().__init__()
        self.instance_id = instance_id

    def filter(self, record: logging.LogRecord) -> bool:
        fields = _record_fields(record)
        fields.setdefault("instance_id", self.instance_id)
        setattr(record, FIELDS_ATTR, fields)
        return True


class _RollingFileHandler(RotatingFileHandler):
    """Size-rotated log file that also drops rolled files older than a number of days."""

    def __init__(self, filename: str, max_bytes: int, backup_count: int, max_age_days: int):
        super().__init__(filename, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        self.max_age_days = max_age_days

    def doRollover(self) -> None:
        super().doRollover()
        if self.max_age_days <= 0:
            return
        cutoff = time.time() - self.max_age_days * 86400
        base = Path(self.baseFilename)
        for old in base.parent.glob(base.name + ".*"):
            try:
                if old.stat().st_mtime < cutoff:
                    old.unlink()
            except OSError:
                continue


def _new_rolling_file(config: LoggingConfig, logger: logging.Logger) -> logging.Handler | None:
    directory = config.directory or "."
    try:
        os.makedirs(directory, mode=0o744, exist_ok=True)
    except OSError:
        logger.error("can't create logging directory", extra={FIELDS_ATTR: {"path": directory}})
        return None
    handler = _RollingFileHandler(
        os.path.join(directory, config.filename or DEFAULT_LOG_FILENAME),
        max_bytes=(config.max_size or DEFAULT_MAX_SIZE_MB) * 1024 * 1024,
        backup_count=config.max_backups or _KEEP_ALL_BACKUPS,
        max_age_days=config.max_age,
    )
    handler.setFormatter(_JsonFormatter())
    return handler


def configure(config: LoggingConfig | None = None, console: TextIO | None = None) -> logging.Logger:
    """Set up the package logger from ``config`` and return it.

    Console output goes to ``console`` (standard error by default), or as JSON
    to standard output; file output is JSON in a size-rotated file.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.propagate = False

    instance_filter = _InstanceFilter(config.instance_id)
    handlers: list[logging.Handler] = []
    if config.console_logging_enabled:
        if config.encode_logs_as_json:
            handler: logging.Handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(_JsonFormatter())
        else:
            handler = logging.StreamHandler(console if console is not None else sys.stderr)
            handler.setFormatter(_ConsoleFormatter(config.console_no_color))
        handlers.append(handler)
    for handler in handlers:
        handler.addFilter(instance_filter)
        logger.addHandler(handler)

    if config.file_logging_enabled:
        file_handler = _new_rolling_file(config, logger)
        if file_handler is not None:
            file_handler.addFilter(instance_filter)
            logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.setLevel(logging.DEBUG if config.verbose else logging.INFO)
    logger.info(
        "logging configured",
        extra={FIELDS_ATTR: {
            "fileLogging": config.file_logging_enabled,
            "jsonLogOutput": config.encode_logs_as_json,
            "consoleLog": config.console_logging_enabled,
            "verbose": config.verbose,
            "logDirectory": config.directory,
            "fileName": config.filename,
            "maxSizeMB": config.max_size,
            "maxBackups": config.max_backups,
            "maxAgeInDays": config.max_age,
        }},
    )
    return logger


@dataclass
class SimpleLogger:
    """printf-style logger that tags every message with a module name."""

    logger: logging.Logger
    name: str

    def _emit(self, level: int, fmt: str, args: tuple[Any, ...]) -> None:
        message = fmt % args if args else fmt
        self.logger.log(level, message, extra={FIELDS_ATTR: {"module": self.name}})

    def logf(self, fmt: str, *args: Any) -> None:
        self._emit(logging.INFO, fmt, args)

    def errorf(self, fmt: str, *args: Any) -> None:
        self._emit(logging.ERROR, fmt, args)