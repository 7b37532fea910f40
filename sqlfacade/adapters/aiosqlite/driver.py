import asyncio
import contextlib
from typing import TYPE_CHECKING, Any, Final, Optional

import aiosqlite

from sqlfacade.core.dialects import SQLITE_DIALECT
from sqlfacade.driver import AsyncDriverAdapterBase
from sqlfacade.driver._common import DEFAULT_TYPE_COERCION_MAP

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from sqlfacade.core.command import Command
    from sqlfacade.core.dialects import DialectFormatter

__all__ = ("AiosqliteCursor", "AiosqliteDriver", "aiosqlite_type_coercion_map")

aiosqlite_type_coercion_map: "Final[Mapping[type, Callable[[Any], Any]]]" = DEFAULT_TYPE_COERCION_MAP


class AiosqliteCursor:
    """Async context manager for AIOSQLite cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: "aiosqlite.Connection") -> None:
        self.connection = connection
        self.cursor: Optional[aiosqlite.Cursor] = None

    async def __aenter__(self) -> "aiosqlite.Cursor":
        self.cursor = await self.connection.cursor()
        return self.cursor

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _ = (exc_type, exc_val, exc_tb)
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                await self.cursor.close()


class AiosqliteDriver(AsyncDriverAdapterBase):
    """Executor for :mod:`aiosqlite` connections.

    A command timeout bounds the wait with :func:`asyncio.wait_for`; the
    resulting :class:`TimeoutError` propagates unchanged, as do driver errors.
    """

    __slots__ = ()

    def __init__(
        self,
        connection: "aiosqlite.Connection",
        dialect: "Optional[DialectFormatter]" = None,
        type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        super().__init__(
            connection=connection,
            dialect=dialect or SQLITE_DIALECT,
            type_coercion_map=type_coercion_map or aiosqlite_type_coercion_map,
        )

    def with_cursor(self, connection: "aiosqlite.Connection") -> "AiosqliteCursor":
        return AiosqliteCursor(connection)

    async def _execute_statement(self, cursor: "aiosqlite.Cursor", command: "Command") -> None:
        execution = cursor.execute(command.command_text, self.prepare_parameters(command))
        if command.timeout:
            await asyncio.wait_for(execution, command.timeout)
        else:
            await execution
