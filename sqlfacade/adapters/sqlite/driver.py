import contextlib
import sqlite3
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Final, Optional

from sqlfacade.core.dialects import SQLITE_DIALECT
from sqlfacade.driver import SyncDriverAdapterBase
from sqlfacade.driver._common import DEFAULT_TYPE_COERCION_MAP, ResultCursor

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence

    from sqlfacade.core.command import Command
    from sqlfacade.core.dialects import DialectFormatter

__all__ = ("SqliteCursor", "SqliteDriver", "SqliteResultCursor", "sqlite_type_coercion_map", "statement_deadline")

sqlite_type_coercion_map: "Final[Mapping[type, Callable[[Any], Any]]]" = DEFAULT_TYPE_COERCION_MAP

PROGRESS_HANDLER_INTERVAL: Final = 1000


@contextmanager
def statement_deadline(connection: "sqlite3.Connection", timeout: "Optional[float]") -> "Iterator[None]":
    """Interrupt statements on ``connection`` that run past ``timeout`` seconds.

    SQLite raises :class:`sqlite3.OperationalError` ("interrupted") once the
    deadline passes. A ``None`` or zero timeout installs nothing.
    """
    if not timeout:
        yield
        return
    deadline = time.monotonic() + timeout
    connection.set_progress_handler(lambda: int(time.monotonic() > deadline), PROGRESS_HANDLER_INTERVAL)
    try:
        yield
    finally:
        connection.set_progress_handler(None, PROGRESS_HANDLER_INTERVAL)


class SqliteCursor:
    """Context manager for SQLite cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: "sqlite3.Connection") -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "sqlite3.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class SqliteResultCursor(ResultCursor):
    """Result cursor that applies the command timeout to every fetch.

    SQLite computes rows lazily, so each fetch re-arms the deadline for the
    statement steps it performs.
    """

    __slots__ = ("connection", "timeout")

    def __init__(self, cursor: "sqlite3.Cursor", connection: "sqlite3.Connection", timeout: "Optional[float]") -> None:
        super().__init__(cursor)
        self.connection = connection
        self.timeout = timeout

    def fetchone(self) -> "Optional[Sequence[Any]]":
        with statement_deadline(self.connection, self.timeout):
            return super().fetchone()

    def fetchmany(self, size: int) -> "list[Sequence[Any]]":
        with statement_deadline(self.connection, self.timeout):
            return super().fetchmany(size)

    def fetchall(self) -> "list[Sequence[Any]]":
        with statement_deadline(self.connection, self.timeout):
            return super().fetchall()

    def __iter__(self) -> "Iterator[Sequence[Any]]":
        return iter(self.fetchone, None)


class SqliteDriver(SyncDriverAdapterBase):
    """Executor for :mod:`sqlite3` connections.

    Parameters are bound by name, so the dialect must render ``@name``,
    ``:name`` or ``$name`` tokens. Driver errors propagate unchanged.
    """

    __slots__ = ()

    def __init__(
        self,
        connection: "sqlite3.Connection",
        dialect: "Optional[DialectFormatter]" = None,
        type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        super().__init__(
            connection=connection,
            dialect=dialect or SQLITE_DIALECT,
            type_coercion_map=type_coercion_map or sqlite_type_coercion_map,
        )

    def with_cursor(self, connection: "sqlite3.Connection") -> "SqliteCursor":
        return SqliteCursor(connection)

    def _execute_statement(self, cursor: "sqlite3.Cursor", command: "Command") -> None:
        """Execute single SQL statement using SQLite execute."""
        with statement_deadline(self.connection, command.timeout):
            cursor.execute(command.command_text, self.prepare_parameters(command))

    @contextmanager
    def execute_reader(self, command: "Command") -> "Iterator[SqliteResultCursor]":
        """Run a command and yield a cursor whose fetches honor the command timeout."""
        with self.with_cursor(self.connection) as cursor:
            self._execute_statement(cursor, command)
            yield SqliteResultCursor(cursor, self.connection, command.timeout)

    def execute_scalar(self, command: "Command") -> Any:
        with self.execute_reader(command) as cursor:
            record = cursor.fetchone()
            return None if record is None else record[0]
