from __future__ import annotations

import datetime as dt
import enum
import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType, TracebackType
from typing import Any, Optional

from .errors import MalformedEventError
from .templates import ValueFormatter, render_template

ExcInfo = tuple[type[BaseException], BaseException, Optional[TracebackType]]

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_LEVEL_ALIASES = {
    "verbose": "VERBOSE",
    "trace": "VERBOSE",
    "debug": "DEBUG",
    "information": "INFORMATION",
    "info": "INFORMATION",
    "warning": "WARNING",
    "warn": "WARNING",
    "error": "ERROR",
    "fatal": "FATAL",
    "critical": "FATAL",
}


class LogLevel(enum.IntEnum):
    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any) -> LogLevel:
        """Resolve a level from a member, an ordinal or a (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        if isinstance(value, str):
            key = _LEVEL_ALIASES.get(value.strip().lower())
            if key is not None:
                return cls[key]
        raise ValueError(f"Unknown log level {value!r}")

    @classmethod
    def from_logging(cls, levelno: int) -> LogLevel:
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.VERBOSE

    def to_logging(self) -> int:
        return _STDLIB_LEVELS[self]


_STDLIB_LEVELS = {
    LogLevel.VERBOSE: logging.NOTSET,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFORMATION: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True)
class ExceptionInfo:
    type_name: str
    message: str
    description: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExceptionInfo:
        return cls.from_exc_info((type(exc), exc, exc.__traceback__))

    @classmethod
    def from_exc_info(cls, exc_info: ExcInfo) -> ExceptionInfo:
        exc_type, exc_value, exc_tb = exc_info
        description = "".join(traceback.format_exception(exc_type, exc_value, exc_tb)).rstrip()
        return cls(type_name=exc_type.__name__, message=str(exc_value), description=description)


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).astimezone()


@dataclass(frozen=True)
class LogEvent:
    """A structured log event as handed to the sink.

    ``rendered_message`` is set for records whose text was already rendered
    elsewhere (``%``-style stdlib records). Otherwise the message is produced
    from ``message_template`` and ``properties``.
    """

    level: LogLevel
    message_template: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    timestamp: dt.datetime = field(default_factory=_now)
    exception: Optional[ExceptionInfo] = None
    rendered_message: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", LogLevel.parse(self.level))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        # Naive timestamps are local time; store them aware so events stay comparable.
        if self.timestamp.tzinfo is None or self.timestamp.utcoffset() is None:
            object.__setattr__(self, "timestamp", self.timestamp.astimezone())
        if isinstance(self.exception, BaseException):
            object.__setattr__(self, "exception", ExceptionInfo.from_exception(self.exception))

    def render_message(self, formatter: Optional[ValueFormatter] = None) -> str:
        if self.rendered_message is not None:
            return self.rendered_message
        return render_template(self.message_template, self.properties, formatter)

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> LogEvent:
        """Convert a stdlib ``LogRecord``.

        ``extra=`` values become properties, followed by ``SourceContext``
        (the logger name).

        Raises:
            MalformedEventError: If the record's ``%`` arguments do not fit its message.
        """
        template = str(record.msg)
        rendered: Optional[str] = None
        if record.args:
            try:
                rendered = record.getMessage()
            except (TypeError, ValueError, KeyError) as exc:
                raise MalformedEventError(f"Cannot render log message {template!r}: {exc}") from exc

        properties: dict[str, Any] = {
            key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES
        }
        properties["SourceContext"] = record.name

        exception: Optional[ExceptionInfo] = None
        if isinstance(record.exc_info, tuple) and record.exc_info[0] is not None:
            exception = ExceptionInfo.from_exc_info(record.exc_info)  # type: ignore[arg-type]

        timestamp = dt.datetime.fromtimestamp(record.created, tz=dt.timezone.utc).astimezone()
        return cls(
            level=LogLevel.from_logging(record.levelno),
            message_template=template,
            properties=properties,
            timestamp=timestamp,
            exception=exception,
            rendered_message=rendered,
        )
