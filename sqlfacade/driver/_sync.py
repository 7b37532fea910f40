"""Synchronous driver base implementation."""

from abc import abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlfacade.driver._common import CommonDriverAttributesMixin, ResultCursor
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextlib import AbstractContextManager

    from sqlfacade.core.command import Command

logger = get_logger("sqlfacade.driver")

__all__ = ("SyncDriverAdapterBase",)


class SyncDriverAdapterBase(CommonDriverAttributesMixin):
    """Template for synchronous executors.

    Concrete adapters supply cursor acquisition and the single execute call;
    cursors are released on every exit path.
    """

    __slots__ = ()

    @abstractmethod
    def with_cursor(self, connection: Any) -> "AbstractContextManager[Any]":
        """Create and return a context manager for cursor acquisition and cleanup.

        This method should return a context manager that yields a cursor.
        """

    @abstractmethod
    def _execute_statement(self, cursor: Any, command: "Command") -> None:
        """Execute ``command`` on ``cursor`` with the prepared parameters."""

    def execute(self, command: "Command") -> int:
        """Run a command and return the number of affected rows."""
        with self.with_cursor(self.connection) as cursor:
            self._execute_statement(cursor, command)
            return int(cursor.rowcount)

    def execute_scalar(self, command: "Command") -> Any:
        """Run a command and return the first column of its first row, or None."""
        with self.with_cursor(self.connection) as cursor:
            self._execute_statement(cursor, command)
            record = cursor.fetchone()
            return None if record is None else record[0]

    @contextmanager
    def execute_reader(self, command: "Command") -> "Iterator[ResultCursor]":
        """Run a command and yield a cursor over its rows."""
        with self.with_cursor(self.connection) as cursor:
            self._execute_statement(cursor, command)
            yield ResultCursor(cursor)

    def close(self) -> None:
        """Close the wrapped connection."""
        logger.debug("Closing %s connection", self.dialect.name)
        self.connection.close()
