"""Asynchronous driver base implementation."""

from abc import abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlfacade.driver._common import AsyncResultCursor, CommonDriverAttributesMixin
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

    from sqlfacade.core.command import Command

logger = get_logger("sqlfacade.driver")

__all__ = ("AsyncDriverAdapterBase",)


class AsyncDriverAdapterBase(CommonDriverAttributesMixin):
    """Template for asynchronous executors."""

    __slots__ = ()

    @abstractmethod
    def with_cursor(self, connection: Any) -> "AbstractAsyncContextManager[Any]":
        """Create and return an async context manager for cursor acquisition and cleanup."""

    @abstractmethod
    async def _execute_statement(self, cursor: Any, command: "Command") -> None:
        """Execute ``command`` on ``cursor`` with the prepared parameters."""

    async def execute(self, command: "Command") -> int:
        async with self.with_cursor(self.connection) as cursor:
            await self._execute_statement(cursor, command)
            return int(cursor.rowcount)

    async def execute_scalar(self, command: "Command") -> Any:
        async with self.with_cursor(self.connection) as cursor:
            await self._execute_statement(cursor, command)
            record = await cursor.fetchone()
            return None if record is None else record[0]

    @asynccontextmanager
    async def execute_reader(self, command: "Command") -> "AsyncIterator[AsyncResultCursor]":
        async with self.with_cursor(self.connection) as cursor:
            await self._execute_statement(cursor, command)
            yield AsyncResultCursor(cursor)

    async def close(self) -> None:
        logger.debug("Closing %s connection", self.dialect.name)
        await self.connection.close()
