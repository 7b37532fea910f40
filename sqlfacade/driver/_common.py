"""Common driver attributes and parameter preparation shared by sync and async adapters."""

import datetime
from collections.abc import Callable, Iterator, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final, Optional
from uuid import UUID

from mypy_extensions import trait

from sqlfacade._serialization import encode_json

if TYPE_CHECKING:
    from sqlfacade.core.command import Command
    from sqlfacade.core.dialects import DialectFormatter
    from sqlfacade.core.parameters import Parameter

__all__ = (
    "DEFAULT_TYPE_COERCION_MAP",
    "AsyncResultCursor",
    "CommonDriverAttributesMixin",
    "ResultCursor",
    "column_names_from_description",
    "prepare_driver_parameters",
)


DEFAULT_TYPE_COERCION_MAP: "Final[Mapping[type, Callable[[Any], Any]]]" = {
    bool: int,
    datetime.datetime: lambda v: v.isoformat(),
    datetime.date: lambda v: v.isoformat(),
    datetime.time: lambda v: v.isoformat(),
    Decimal: str,
    UUID: str,
    dict: encode_json,
    list: encode_json,
    tuple: lambda v: encode_json(list(v)),
}


def _constrain(parameter: "Parameter", driver_value: Any) -> Any:
    if parameter.size is not None and isinstance(driver_value, (str, bytes, bytearray)):
        driver_value = driver_value[: parameter.size]
    if parameter.scale is not None and isinstance(driver_value, Decimal):
        driver_value = driver_value.quantize(Decimal(1).scaleb(-parameter.scale))
    return driver_value


def prepare_driver_parameters(
    parameters: "Sequence[Parameter]", type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None
) -> "dict[str, Any]":
    """Convert bound parameters into the mapping a DB-API driver binds by name.

    ``DBNull`` becomes ``None``, size and scale hints are enforced, then values
    whose exact type appears in ``type_coercion_map`` are coerced.

    Args:
        parameters: Parameters of a finished command.
        type_coercion_map: Per-type converters for values the driver cannot bind natively.

    Returns:
        Parameter names mapped to driver values.
    """
    coercions = DEFAULT_TYPE_COERCION_MAP if type_coercion_map is None else type_coercion_map
    prepared: dict[str, Any] = {}
    for parameter in parameters:
        driver_value = _constrain(parameter, parameter.driver_value)
        coerce = coercions.get(type(driver_value))
        prepared[parameter.name] = driver_value if coerce is None else coerce(driver_value)
    return prepared


def column_names_from_description(description: "Optional[Sequence[Sequence[Any]]]") -> "tuple[str, ...]":
    return tuple(column[0] for column in description or ())


class ResultCursor:
    """DB-API cursor exposing the column names of its result."""

    __slots__ = ("_column_names", "cursor")

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._column_names = column_names_from_description(cursor.description)

    @property
    def column_names(self) -> "tuple[str, ...]":
        return self._column_names

    def fetchone(self) -> "Optional[Sequence[Any]]":
        return self.cursor.fetchone()  # type: ignore[no-any-return]

    def fetchmany(self, size: int) -> "list[Sequence[Any]]":
        return list(self.cursor.fetchmany(size))

    def fetchall(self) -> "list[Sequence[Any]]":
        return list(self.cursor.fetchall())

    def __iter__(self) -> "Iterator[Sequence[Any]]":
        return iter(self.cursor)


class AsyncResultCursor:
    """Asynchronous cursor exposing the column names of its result."""

    __slots__ = ("_column_names", "cursor")

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._column_names = column_names_from_description(cursor.description)

    @property
    def column_names(self) -> "tuple[str, ...]":
        return self._column_names

    async def fetchone(self) -> "Optional[Sequence[Any]]":
        return await self.cursor.fetchone()  # type: ignore[no-any-return]

    async def fetchmany(self, size: int) -> "list[Sequence[Any]]":
        return list(await self.cursor.fetchmany(size))

    async def fetchall(self) -> "list[Sequence[Any]]":
        return list(await self.cursor.fetchall())


@trait
class CommonDriverAttributesMixin:
    """Attributes shared by every driver adapter.

    A driver owns the connection it wraps: closing the driver closes the connection.
    """

    __slots__ = ("connection", "dialect", "type_coercion_map")
    connection: "Any"
    dialect: "DialectFormatter"
    type_coercion_map: "Mapping[type, Callable[[Any], Any]]"

    def __init__(
        self,
        connection: "Any",
        dialect: "DialectFormatter",
        type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        """Initialize driver adapter.

        Args:
            connection: Database connection instance
            dialect: Dialect whose tokens the driver binds
            type_coercion_map: Per-type converters applied to parameter values
        """
        self.connection = connection
        self.dialect = dialect
        self.type_coercion_map = DEFAULT_TYPE_COERCION_MAP if type_coercion_map is None else type_coercion_map

    def prepare_parameters(self, command: "Command") -> "dict[str, Any]":
        return prepare_driver_parameters(command.parameters, self.type_coercion_map)
