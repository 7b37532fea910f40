"""Aiosqlite provider factory."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional

import aiosqlite

from sqlfacade.adapters.aiosqlite.driver import AiosqliteDriver
from sqlfacade.adapters.sqlite.config import parse_connection_string
from sqlfacade.core.dialects import SQLITE_DIALECT
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlfacade.core.dialects import DialectFormatter

logger = get_logger("sqlfacade.adapters.aiosqlite")

__all__ = ("AiosqliteProviderFactory",)


class AiosqliteProviderFactory:
    """Provider creating :mod:`aiosqlite` connections.

    Connection strings follow the SQLite adapter's syntax.

    Args:
        dialect: Dialect commands are rendered with.
        **connection_defaults: Parameters applied before those of the connection string.
    """

    name: ClassVar[str] = "aiosqlite"
    is_async: ClassVar[bool] = True

    def __init__(self, dialect: "Optional[DialectFormatter]" = None, **connection_defaults: Any) -> None:
        self.dialect = dialect or SQLITE_DIALECT
        self.connection_defaults = connection_defaults

    def connection_params(self, connection_string: str) -> "dict[str, Any]":
        return {**self.connection_defaults, **parse_connection_string(connection_string)}

    async def create_connection(self, connection_string: str) -> "aiosqlite.Connection":
        """Open a new aiosqlite connection for ``connection_string``."""
        params = self.connection_params(connection_string)
        logger.debug("Opening SQLite database %s", params.get("database"))
        return await aiosqlite.connect(**params)

    def create_executor(self, connection: "aiosqlite.Connection") -> AiosqliteDriver:
        return AiosqliteDriver(connection, self.dialect)

    def __repr__(self) -> str:
        return f"AiosqliteProviderFactory(dialect={self.dialect.name!r})"
