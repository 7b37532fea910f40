"""Bound parameters and the composable setters that configure them.

Components:
- DbType enum: Provider-neutral type hints
- Parameter: Name, value and optional type/size/precision/scale hints
- ParameterSetter: Composable mutator applied to a Parameter
- OrdinalNaming: Strategy turning an ordinal into an anonymous name
- create_parameter / create_parameters: Parameter factories for bare values and setters

Setters compose with ``+``. Each one touches a single field, so when two
setters in a chain touch the same field the later one wins::

    setter = name("id") + db_type(DbType.INT32) + value(42)
"""

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, Final, Optional, Union

from mypy_extensions import mypyc_attr

from sqlfacade.exceptions import InvalidArgumentError
from sqlfacade.typing import DBNull

__all__ = (
    "DEFAULT_NAMING",
    "DbType",
    "OrdinalNaming",
    "Parameter",
    "ParameterSetter",
    "ansi_string",
    "create_parameter",
    "create_parameters",
    "db_type",
    "name",
    "param",
    "precision",
    "scale",
    "size",
    "value",
)


class DbType(str, Enum):
    """Provider-neutral parameter type hints."""

    ANSI_STRING = "ansi_string"
    ANSI_STRING_FIXED_LENGTH = "ansi_string_fixed_length"
    BINARY = "binary"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    DOUBLE = "double"
    GUID = "guid"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    OBJECT = "object"
    STRING = "string"
    STRING_FIXED_LENGTH = "string_fixed_length"
    TIME = "time"


@mypyc_attr(allow_interpreted_subclasses=False)
class Parameter:
    """A parameter bound to a command.

    Attributes:
        name: Parameter name without the dialect prefix; empty until assigned
        value: The value, or :data:`~sqlfacade.typing.DBNull` for a database NULL
        db_type: Optional type hint
        size: Optional maximum size of string or binary values
        precision: Optional numeric precision
        scale: Optional numeric scale
    """

    __slots__ = ("db_type", "name", "precision", "scale", "size", "value")

    def __init__(
        self,
        name: str = "",
        value: Any = DBNull,
        db_type: "Optional[DbType]" = None,
        size: "Optional[int]" = None,
        precision: "Optional[int]" = None,
        scale: "Optional[int]" = None,
    ) -> None:
        self.name = name
        self.value = value
        self.db_type = db_type
        self.size = size
        self.precision = precision
        self.scale = scale

    @property
    def driver_value(self) -> Any:
        """The value as handed to a DB-API driver (``DBNull`` becomes ``None``)."""
        return None if self.value is DBNull else self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return (
            self.name == other.name
            and self.value == other.value
            and self.db_type == other.db_type
            and self.size == other.size
            and self.precision == other.precision
            and self.scale == other.scale
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        hints = "".join(
            f", {field}={getattr(self, field)!r}"
            for field in ("db_type", "size", "precision", "scale")
            if getattr(self, field) is not None
        )
        return f"Parameter(name={self.name!r}, value={self.value!r}{hints})"


ParameterAction = Callable[[Parameter], None]


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterSetter:
    """An ordered chain of mutations applied to a :class:`Parameter`.

    Passing a setter where a value is expected configures the parameter
    instead of binding the setter itself.
    """

    __slots__ = ("_actions",)

    def __init__(self, *actions: ParameterAction) -> None:
        self._actions: tuple[ParameterAction, ...] = actions

    def __call__(self, parameter: Parameter) -> Parameter:
        for action in self._actions:
            action(parameter)
        return parameter

    def __add__(self, other: "Optional[ParameterSetter]") -> "ParameterSetter":
        if other is None:
            return self
        if not isinstance(other, ParameterSetter):
            return NotImplemented
        return ParameterSetter(*self._actions, *other._actions)

    def __radd__(self, other: "Optional[ParameterSetter]") -> "ParameterSetter":
        if other is None:
            return self
        return NotImplemented

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ParameterSetter(<{len(self._actions)} actions>)"


NOOP: Final[ParameterSetter] = ParameterSetter()


def _set(field: str, field_value: Any) -> ParameterSetter:
    def action(parameter: Parameter) -> None:
        setattr(parameter, field, field_value)

    return ParameterSetter(action)


def db_type(type_hint: DbType) -> ParameterSetter:
    """Set the parameter type hint."""
    return _set("db_type", DbType(type_hint))


def size(value_size: int) -> ParameterSetter:
    """Set the maximum size of a string or binary value."""
    return _set("size", value_size)


def precision(value_precision: int) -> ParameterSetter:
    """Set the numeric precision."""
    return _set("precision", value_precision)


def scale(value_scale: int) -> ParameterSetter:
    """Set the numeric scale."""
    return _set("scale", value_scale)


def value(parameter_value: Any) -> ParameterSetter:
    """Set the value; ``None`` is stored as ``DBNull``."""
    return _set("value", DBNull if parameter_value is None else parameter_value)


def name(parameter_name: "Optional[str]") -> ParameterSetter:
    """Set the parameter name. An empty name leaves the parameter untouched."""
    if not parameter_name:
        return NOOP
    return _set("name", parameter_name)


_name_setter = name
_db_type_setter = db_type
_size_setter = size
_precision_setter = precision
_scale_setter = scale
_value_setter = value


def param(
    parameter_value: Any,
    *,
    name: "Optional[str]" = None,
    db_type: "Optional[DbType]" = None,
    size: "Optional[int]" = None,
    precision: "Optional[int]" = None,
    scale: "Optional[int]" = None,
) -> ParameterSetter:
    """Build a setter configuring several fields at once.

    Args:
        parameter_value: The value to bind
        name: Optional explicit name
        db_type: Optional type hint
        size: Optional size
        precision: Optional precision
        scale: Optional scale

    Returns:
        The composed setter
    """
    setter = _name_setter(name)
    if db_type is not None:
        setter += _db_type_setter(db_type)
    if size is not None:
        setter += _size_setter(size)
    if precision is not None:
        setter += _precision_setter(precision)
    if scale is not None:
        setter += _scale_setter(scale)
    return setter + _value_setter(parameter_value)


def ansi_string(
    parameter_value: "Optional[str]", *, name: "Optional[str]" = None, size: "Optional[int]" = None
) -> ParameterSetter:
    """Bind a non-Unicode string."""
    return param(parameter_value, name=name, db_type=DbType.ANSI_STRING, size=size)


@mypyc_attr(allow_interpreted_subclasses=False)
class OrdinalNaming:
    """Names anonymous parameters from their ordinal.

    The ordinal is rendered in invariant decimal form, with an optional prefix.
    """

    __slots__ = ("prefix",)

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def __call__(self, ordinal: int) -> str:
        return f"{self.prefix}{ordinal:d}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrdinalNaming):
            return NotImplemented
        return self.prefix == other.prefix

    def __hash__(self) -> int:
        return hash((OrdinalNaming, self.prefix))

    def __repr__(self) -> str:
        return f"OrdinalNaming(prefix={self.prefix!r})"


DEFAULT_NAMING: Final[OrdinalNaming] = OrdinalNaming()


def create_parameter(argument: Any) -> Parameter:
    """Create an unnamed parameter from a bare value or a setter.

    Args:
        argument: The value to bind, or a :class:`ParameterSetter`

    Returns:
        A new parameter; its name is empty unless a setter supplied one
    """
    parameter = Parameter()
    if isinstance(argument, ParameterSetter):
        return argument(parameter)
    parameter.value = DBNull if argument is None else argument
    return parameter


def create_parameters(
    arguments: "Iterable[Any]", naming: "Union[OrdinalNaming, Callable[[int], str]]" = DEFAULT_NAMING
) -> "tuple[Parameter, ...]":
    """Create positional parameters for literal command text.

    Each argument is named from its position before any setter runs, so a
    setter carrying a name overrides the ordinal one.

    Args:
        arguments: Bare values or setters, in order
        naming: Anonymous naming strategy

    Returns:
        The parameters in argument order

    Raises:
        InvalidArgumentError: If two arguments end up with the same name.
    """
    parameters = []
    seen: set[str] = set()
    for ordinal, argument in enumerate(arguments):
        parameter = Parameter(name=naming(ordinal))
        if isinstance(argument, ParameterSetter):
            argument(parameter)
        else:
            parameter.value = DBNull if argument is None else argument
        if parameter.name in seen:
            msg = f'Parameter name "{parameter.name}" is used by more than one argument.'
            raise InvalidArgumentError(msg, "args")
        seen.add(parameter.name)
        parameters.append(parameter)
    return tuple(parameters)
