"""SQLFacade: parameterized SQL without the connection and cursor boilerplate."""

from sqlfacade import adapters, base, config, core, driver, exceptions, observability, typing, utils
from sqlfacade.__metadata__ import __version__
from sqlfacade.base import AsyncDatabase, Database, DatabaseOpener, DatabaseState
from sqlfacade.config import (
    ConnectionStringSettings,
    EnvironmentConnectionStringResolver,
    FacadeConfig,
    MappingConnectionStringResolver,
    get_global_config,
    get_provider,
    register_provider,
    reset_global_config,
    set_global_config,
)
from sqlfacade.core.command import Command, CommandOptions, QueryOptions
from sqlfacade.core.dialects import COLON_DIALECT, SQLITE_DIALECT, TSQL_DIALECT, DialectFormatter
from sqlfacade.core.parameters import (
    DbType,
    OrdinalNaming,
    Parameter,
    ParameterSetter,
    ansi_string,
    db_type,
    name,
    param,
    precision,
    scale,
    size,
    value,
)
from sqlfacade.core.result import AsyncRowStream, RowStream
from sqlfacade.core.rows import Row
from sqlfacade.core.template import SQLList, SQLLiteral, SQLNamed, SQLRef, SQLTemplate
from sqlfacade.exceptions import (
    ConfigurationNotFoundError,
    DatabaseClosedError,
    InvalidArgumentError,
    ParameterConflictError,
    SQLConversionError,
    SQLFacadeError,
    UnresolvedReferenceError,
    UnsupportedLiteralError,
)
from sqlfacade.typing import DBNull

__all__ = (
    "COLON_DIALECT",
    "SQLITE_DIALECT",
    "TSQL_DIALECT",
    "AsyncDatabase",
    "AsyncRowStream",
    "Command",
    "CommandOptions",
    "ConfigurationNotFoundError",
    "ConnectionStringSettings",
    "DBNull",
    "Database",
    "DatabaseClosedError",
    "DatabaseOpener",
    "DatabaseState",
    "DbType",
    "DialectFormatter",
    "EnvironmentConnectionStringResolver",
    "FacadeConfig",
    "InvalidArgumentError",
    "MappingConnectionStringResolver",
    "OrdinalNaming",
    "Parameter",
    "ParameterConflictError",
    "ParameterSetter",
    "QueryOptions",
    "Row",
    "RowStream",
    "SQLConversionError",
    "SQLFacadeError",
    "SQLList",
    "SQLLiteral",
    "SQLNamed",
    "SQLRef",
    "SQLTemplate",
    "UnresolvedReferenceError",
    "UnsupportedLiteralError",
    "__version__",
    "adapters",
    "ansi_string",
    "base",
    "config",
    "core",
    "db_type",
    "driver",
    "exceptions",
    "get_global_config",
    "get_provider",
    "name",
    "observability",
    "param",
    "precision",
    "register_provider",
    "reset_global_config",
    "scale",
    "set_global_config",
    "size",
    "typing",
    "utils",
    "value",
)
