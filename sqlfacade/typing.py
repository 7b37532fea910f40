from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Union

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from sqlfacade.core.parameters import Parameter, ParameterSetter
    from sqlfacade.core.template import SQLTemplate

__all__ = (
    "CommandText",
    "ConnectionDecorator",
    "ConnectionT",
    "DBNull",
    "DBNullEnum",
    "DBNullType",
    "ParameterSink",
    "StatementParameters",
    "T",
    "is_db_null",
)

T = TypeVar("T")
ConnectionT = TypeVar("ConnectionT")


class DBNullEnum(Enum):
    """A database NULL, distinct from an unset value."""

    DB_NULL = 0

    def __repr__(self) -> str:
        return "DBNull"

    def __bool__(self) -> bool:
        return False


DBNullType: TypeAlias = Literal[DBNullEnum.DB_NULL]
DBNull: "DBNullType" = DBNullEnum.DB_NULL
"""Sentinel stored in :attr:`Parameter.value` for a database NULL."""

CommandText: TypeAlias = "Union[str, SQLTemplate]"
"""Literal SQL text or a structured template."""

StatementParameters: TypeAlias = "Union[Any, ParameterSetter]"
"""A single positional argument: a bare value or a parameter setter."""

ParameterSink: TypeAlias = "Callable[[Any], Parameter]"
"""Creates a bound parameter from a template slot value."""

ConnectionDecorator: TypeAlias = "Callable[[Any], Any]"
"""Wraps a freshly created connection before the facade uses it."""


def is_db_null(value: Any) -> bool:
    """Return True for ``None`` and :data:`DBNull`."""
    return value is None or value is DBNull
