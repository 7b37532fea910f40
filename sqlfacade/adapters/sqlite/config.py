"""SQLite provider factory and connection-string parsing."""

import sqlite3
from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict

from typing_extensions import NotRequired

from sqlfacade.adapters.sqlite.driver import SqliteDriver
from sqlfacade.core.dialects import SQLITE_DIALECT
from sqlfacade.exceptions import ImproperConfigurationError, argument_null_or_empty
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlfacade.core.dialects import DialectFormatter

logger = get_logger("sqlfacade.adapters.sqlite")

__all__ = ("SqliteConnectionParams", "SqliteProviderFactory", "parse_connection_string")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


_DATABASE_KEYS = frozenset({"datasource", "database", "filename"})
_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


def _parse_bool(key: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"Invalid boolean value {raw!r} for connection string key {key!r}"
    raise ImproperConfigurationError(msg)


def _parse_number(kind: "Callable[[str], Any]", key: str, raw: str) -> Any:
    try:
        return kind(raw)
    except ValueError as e:
        msg = f"Invalid value {raw!r} for connection string key {key!r}"
        raise ImproperConfigurationError(msg) from e


def parse_connection_string(connection_string: str) -> SqliteConnectionParams:
    """Parse a SQLite connection string.

    A string without ``=`` is taken as the database path (``:memory:`` and
    ``file:`` URIs included). Otherwise it is a ``;``-separated list of
    ``key=value`` pairs; keys are case-insensitive and may contain spaces:
    ``Data Source`` / ``Database`` / ``Filename``, ``Timeout``, ``Mode``,
    ``Uri``, ``Check Same Thread``, ``Cached Statements`` and
    ``Isolation Level``.

    Connections run in autocommit mode unless an isolation level is given.

    Raises:
        InvalidArgumentError: If the string is empty.
        ImproperConfigurationError: If a key is unknown or a value is invalid.
    """
    if not connection_string or not connection_string.strip():
        raise argument_null_or_empty("connection_string")
    params: SqliteConnectionParams = {"isolation_level": None}
    if "=" not in connection_string or connection_string.lstrip().startswith("file:"):
        params["database"] = connection_string.strip()
    else:
        mode: Optional[str] = None
        for pair in connection_string.split(";"):
            if not pair.strip():
                continue
            raw_key, separator, raw_value = pair.partition("=")
            key = "".join(raw_key.split()).lower()
            raw_value = raw_value.strip()
            if not separator:
                msg = f"Connection string segment {pair.strip()!r} is not a key=value pair"
                raise ImproperConfigurationError(msg)
            label = raw_key.strip()
            if key in _DATABASE_KEYS:
                params["database"] = raw_value
            elif key == "timeout":
                params["timeout"] = _parse_number(float, label, raw_value)
            elif key == "cachedstatements":
                params["cached_statements"] = _parse_number(int, label, raw_value)
            elif key == "mode":
                mode = raw_value.lower()
            elif key == "uri":
                params["uri"] = _parse_bool(label, raw_value)
            elif key == "checksamethread":
                params["check_same_thread"] = _parse_bool(label, raw_value)
            elif key == "isolationlevel":
                params["isolation_level"] = raw_value or None
            else:
                msg = f"Unsupported SQLite connection string key {label!r}"
                raise ImproperConfigurationError(msg)
        if "database" not in params:
            msg = "SQLite connection string does not name a database"
            raise ImproperConfigurationError(msg)
        if mode is not None:
            database = params["database"]
            if not database.startswith("file:"):
                database = f"file:{database}"
            separator = "&" if "?" in database else "?"
            params["database"] = f"{database}{separator}mode={mode}"
            params["uri"] = True
    if params["database"].startswith("file:") and "uri" not in params:
        logger.debug("Database URI detected (%s); enabling URI mode.", params["database"])
        params["uri"] = True
    return params


class SqliteProviderFactory:
    """Provider creating :mod:`sqlite3` connections.

    Args:
        dialect: Dialect commands are rendered with. Must be case sensitive, as
            SQLite matches parameter names exactly.
        **connection_defaults: Parameters applied before those of the connection string.
    """

    name: ClassVar[str] = "sqlite"
    is_async: ClassVar[bool] = False

    def __init__(self, dialect: "Optional[DialectFormatter]" = None, **connection_defaults: Any) -> None:
        self.dialect = dialect or SQLITE_DIALECT
        self.connection_defaults = connection_defaults

    def connection_params(self, connection_string: str) -> "dict[str, Any]":
        return {**self.connection_defaults, **parse_connection_string(connection_string)}

    def create_connection(self, connection_string: str) -> "sqlite3.Connection":
        """Open a new SQLite connection for ``connection_string``."""
        params = self.connection_params(connection_string)
        logger.debug("Opening SQLite database %s", params.get("database"))
        return sqlite3.connect(**params)

    def create_executor(self, connection: "sqlite3.Connection") -> SqliteDriver:
        return SqliteDriver(connection, self.dialect)

    def __repr__(self) -> str:
        return f"SqliteProviderFactory(dialect={self.dialect.name!r})"
