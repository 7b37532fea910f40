# ruff: noqa: PLR6301
"""Logging for SQLFacade.

Every logger hangs off the ``sqlfacade`` namespace. Records pick up the
correlation ID of the current context, and library code attaches
machine-readable details under ``extra_fields`` for
:class:`StructuredFormatter` to merge into its JSON payload::

    logger.debug("Built command", extra={"extra_fields": {"parameter_names": ["id"]}})
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from sqlfacade._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Iterable
    from logging import LogRecord
    from typing import TextIO

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final = "sqlfacade"
TEXT_FORMAT: Final = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlfacade_correlation_id", default=None)

_RECORD_FIELDS: Final = (
    ("level", "levelname"),
    ("logger", "name"),
    ("module", "module"),
    ("function", "funcName"),
    ("line", "lineno"),
)


def set_correlation_id(correlation_id: str | None) -> None:
    """Bind ``correlation_id`` to the current context; ``None`` clears it."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation ID onto each record that lacks one."""

    def filter(self, record: LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    The payload holds the timestamp, message and source location of the
    record, its correlation ID when one is known, every key of its
    ``extra_fields`` mapping, and the formatted traceback when the record
    carries exception info.
    """

    def format(self, record: LogRecord) -> str:
        payload: dict[str, Any] = {"timestamp": self.formatTime(record, self.datefmt), "message": record.getMessage()}
        payload.update((key, getattr(record, attribute)) for key, attribute in _RECORD_FIELDS)

        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            payload.update(extra_fields)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return str(encode_json(payload))


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``sqlfacade`` namespace.

    Args:
        name: Dotted logger name, with or without the ``sqlfacade.`` prefix.
            ``None`` returns the package root logger.

    Returns:
        The logger, with a :class:`CorrelationIDFilter` attached once.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: int | str = logging.INFO,
    *,
    structured: bool = True,
    stream: TextIO | None = None,
    handlers: Iterable[logging.Handler] = (),
) -> logging.Logger:
    """Route SQLFacade logs to a stream handler of their own.

    Replaces any handlers previously installed on the ``sqlfacade`` logger and
    stops propagation to the root logger.

    Args:
        level: Level name or number for the package logger.
        structured: Emit JSON lines through :class:`StructuredFormatter`
            instead of plain text.
        stream: Destination of the console handler, standard output by default.
        handlers: Further handlers, attached unchanged after the console one.

    Returns:
        The configured package logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if structured else logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(console_handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.propagate = False

    root_logger.debug(
        "Logging configured",
        extra={"extra_fields": {"structured": structured, "handlers": len(root_logger.handlers)}},
    )
    return root_logger
