"""SQLite adapter for SQLFacade."""

from sqlfacade.adapters.sqlite.config import SqliteConnectionParams, SqliteProviderFactory, parse_connection_string
from sqlfacade.adapters.sqlite.driver import SqliteCursor, SqliteDriver, SqliteResultCursor

__all__ = (
    "SqliteConnectionParams",
    "SqliteCursor",
    "SqliteDriver",
    "SqliteProviderFactory",
    "SqliteResultCursor",
    "parse_connection_string",
)
