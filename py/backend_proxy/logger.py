"""Three-level log filter in front of the standard logging machinery."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from .errors import ConfigError

SINK_LOGGER_NAME = "backend_proxy.proxy"


class LoggingLevel(str, Enum):
    """Ordered verbosity levels: error < info < debug."""

    ERROR = "error"
    INFO = "info"
    DEBUG = "debug"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {LoggingLevel.ERROR: 0, LoggingLevel.INFO: 1, LoggingLevel.DEBUG: 2}

_STDLIB_LEVELS = {
    LoggingLevel.ERROR: logging.ERROR,
    LoggingLevel.INFO: logging.INFO,
    LoggingLevel.DEBUG: logging.DEBUG,
}

LogSink = Callable[[LoggingLevel, str, Any], None]


def parse_level(value: LoggingLevel | str, *, what: str = "logging level") -> LoggingLevel:
    if isinstance(value, LoggingLevel):
        return value
    try:
        return LoggingLevel(str(value).lower())
    except ValueError as exc:
        raise ConfigError(f"invalid {what}: {value!r}") from exc


def logging_sink(level: LoggingLevel, message: str, data: Any = None) -> None:
    """Default sink: forward to the ``backend_proxy.proxy`` stdlib logger."""
    logger = logging.getLogger(SINK_LOGGER_NAME)
    stdlib_level = _STDLIB_LEVELS[level]
    if not message:
        logger.log(stdlib_level, "")
    elif data is None:
        logger.log(stdlib_level, "%s", message)
    else:
        logger.log(stdlib_level, "%s %s", message, data)


class LeveledLogger:
    """Gate messages by rank before they reach *sink*.

    The threshold is validated when the logger is built; a ``None`` threshold
    turns all output off.
    """

    def __init__(self, threshold: LoggingLevel | str | None, sink: LogSink | None = None) -> None:
        self._threshold = None if threshold is None else parse_level(threshold, what="configured logging level")
        self._sink = sink or logging_sink

    @property
    def threshold(self) -> LoggingLevel | None:
        return self._threshold

    def enabled_for(self, level: LoggingLevel | str) -> bool:
        parsed = parse_level(level, what="message logging level")
        return self._threshold is not None and parsed.rank <= self._threshold.rank

    def log(self, level: LoggingLevel | str, message: str, data: Any = None) -> None:
        parsed = parse_level(level, what="message logging level")
        if self._threshold is None or parsed.rank > self._threshold.rank:
            return
        self._sink(parsed, message, data if message else None)

    def error(self, message: str, data: Any = None) -> None:
        self.log(LoggingLevel.ERROR, message, data)

    def info(self, message: str, data: Any = None) -> None:
        self.log(LoggingLevel.INFO, message, data)

    def debug(self, message: str, data: Any = None) -> None:
        self.log(LoggingLevel.DEBUG, message, data)

    __call__ = log


def utc_compact_timestamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) as ``HH:MM:SS.mmm`` in UTC."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}"


class CompactFormatter(logging.Formatter):
    """Render ``HH:MM:SS.mmm [backend-proxy] LEVEL message``; empty messages stay blank."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if not message:
            return ""
        moment = datetime.fromtimestamp(record.created, timezone.utc)
        line = f"{utc_compact_timestamp(moment)} [backend-proxy] {record.levelname:<5} {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and give the leveled sink its compact console handler."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    sink_logger = logging.getLogger(SINK_LOGGER_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(CompactFormatter())
    sink_logger.handlers[:] = [handler]
    sink_logger.setLevel(logging.DEBUG)
    sink_logger.propagate = False
