"""SQL formatting and parameter binding.

Components:
- parameters: Parameter model and composable setters
- dialects: Token, literal and name-comparison rules per SQL engine
- template: Structured templates and their slot kinds
- formatter: The formatting pass turning a template into text and parameters
- command: Commands, options and the command builder
- rows, result, conversion: Row projection, lazy streams and scalar conversion
"""

from sqlfacade.core.command import (
    DEFAULT_COMMAND_OPTIONS,
    DEFAULT_QUERY_OPTIONS,
    UNBUFFERED_QUERY_OPTIONS,
    Command,
    CommandBuilder,
    CommandOptions,
    QueryOptions,
)
from sqlfacade.core.conversion import convert_scalar
from sqlfacade.core.dialects import (
    COLON_DIALECT,
    SQLITE_DIALECT,
    TSQL_DIALECT,
    DialectFormatter,
    create_dialect,
    get_dialect,
    list_dialects,
    register_dialect,
)
from sqlfacade.core.formatter import FormattedCommand, TemplateFormatter, format_template
from sqlfacade.core.parameters import (
    DEFAULT_NAMING,
    DbType,
    OrdinalNaming,
    Parameter,
    ParameterSetter,
    ansi_string,
    create_parameter,
    create_parameters,
    param,
)
from sqlfacade.core.result import AsyncRowStream, RowStream
from sqlfacade.core.rows import Row
from sqlfacade.core.template import SQLList, SQLLiteral, SQLNamed, SQLRef, SQLTemplate

__all__ = (
    "COLON_DIALECT",
    "DEFAULT_COMMAND_OPTIONS",
    "DEFAULT_NAMING",
    "DEFAULT_QUERY_OPTIONS",
    "SQLITE_DIALECT",
    "TSQL_DIALECT",
    "UNBUFFERED_QUERY_OPTIONS",
    "AsyncRowStream",
    "Command",
    "CommandBuilder",
    "CommandOptions",
    "DbType",
    "DialectFormatter",
    "FormattedCommand",
    "OrdinalNaming",
    "Parameter",
    "ParameterSetter",
    "QueryOptions",
    "Row",
    "RowStream",
    "SQLList",
    "SQLLiteral",
    "SQLNamed",
    "SQLRef",
    "SQLTemplate",
    "TemplateFormatter",
    "ansi_string",
    "convert_scalar",
    "create_dialect",
    "create_parameter",
    "create_parameters",
    "format_template",
    "get_dialect",
    "list_dialects",
    "param",
    "register_dialect",
)
