"""Application logging: a small structured logger writing console lines."""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass
from typing import Any, Protocol, TextIO

__all__ = ["Field", "Logger", "AppLogger"]


@dataclass(frozen=True)
class Field:
    """A key/value pair attached to a log entry."""

    key: str
    value: Any


class Logger(Protocol):
    """The logging interface the application components depend on."""

    def debug(self, msg: str, *args: Field) -> None: ...

    def info(self, msg: str, *args: Field) -> None: ...

    def warn(self, msg: str, *args: Field) -> None: ...

    def error(self, msg: str, *args: Field) -> None: ...

    def sync(self) -> None: ...


_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}


class _ConsoleFormatter(logging.Formatter):
    """Formats records as: time, level, message and a JSON object of fields."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = time.strftime("%Y/%m/%d %H:%M:%S", time.localtime(record.created))
        level = _LEVEL_NAMES.get(record.levelno, record.levelname)
        line = f"{stamp}\t{level}\t{record.getMessage()}"
        fields = getattr(record, "fields", ())
        if fields:
            payload = {field.key: field.value for field in fields}
            line += "\t" + json.dumps(payload, default=str, ensure_ascii=False)
        return line


class AppLogger:
    """A development-style console logger with structured fields."""

    def __init__(self, name: str = "notekeeper", stream: TextIO | None = None) -> None:
        self._logger = logging.Logger(name, logging.DEBUG)
        self._handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        self._handler.setFormatter(_ConsoleFormatter())
        self._logger.addHandler(self._handler)

    def _log(self, level: int, msg: str, fields: tuple[Field, ...]) -> None:
        self._logger.log(level, msg, extra={"fields": fields})

    def debug(self, msg: str, *args: Field) -> None:
        self._log(logging.DEBUG, msg, args)

    def info(self, msg: str, *args: Field) -> None:
        self._log(logging.INFO, msg, args)

    def warn(self, msg: str, *args: Field) -> None:
        self._log(logging.WARNING, msg, args)

    def error(self, msg: str, *args: Field) -> None:
        self._log(logging.ERROR, msg, args)

    def sync(self) -> None:
        """Flush any buffered output."""
        self._handler.flush()