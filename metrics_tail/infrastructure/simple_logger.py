"""Logger adapter over the standard logging module.

Structured keyword arguments travel on the log record as attributes and
are rendered by ``StructuredFormatter`` as trailing ``key=value`` pairs,
e.g.::

    2024-01-01 12:00:00,000 - metrics_tail - ERROR - Failed to flush metrics to 1 sink(s): timeout failure_count=1 sink_count=3
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..ports.logger import LoggerPort

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


def structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """The ``extra`` fields attached to a record, in insertion order."""
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}


def safe_extra(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Prefix keys that would clash with built-in record attributes."""
    return {(f"field_{key}" if key in _RECORD_ATTRIBUTES else key): value for key, value in fields.items()}


class StructuredFormatter(logging.Formatter):
    """Formatter that appends structured fields after the message."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        fields = structured_fields(record)
        if not fields:
            return line
        return line + " " + " ".join(f"{key}={value}" for key, value in fields.items())


class SimpleLogger(LoggerPort):
    """LoggerPort writing through a named stdlib logger."""

    def __init__(self, name: str = "metrics_tail", level: int = logging.INFO):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter(LOG_FORMAT))
            self._logger.addHandler(handler)

    def _log(self, level: int, message: str, fields: Mapping[str, Any]) -> None:
        self._logger.log(level, message, extra=safe_extra(fields))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log at error level with the traceback of ``exc_info``, or of the active exception."""
        self._logger.error(message, exc_info=exc_info or True, extra=safe_extra(kwargs))
