"""Dialect formatters: how parameter tokens and literals are spelled in SQL text.

A dialect is a fixed, shareable profile. It never changes during a call;
formatting state lives in the formatter pass, not here.
"""

import threading
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlfacade.core.parameters import DEFAULT_NAMING, OrdinalNaming
from sqlfacade.exceptions import ConfigurationNotFoundError, UnsupportedLiteralError
from sqlfacade.typing import DBNull

__all__ = (
    "COLON_DIALECT",
    "SQLITE_DIALECT",
    "TSQL_DIALECT",
    "DialectFormatter",
    "create_dialect",
    "get_dialect",
    "list_dialects",
    "register_dialect",
)


@mypyc_attr(allow_interpreted_subclasses=True)
class DialectFormatter:
    """Lexical rules for one SQL engine.

    Args:
        name: Registry name of the dialect.
        prefix: Sigil placed before every parameter name, e.g. ``@`` or ``:``.
        case_sensitive: Whether two parameter names differing only in case are distinct.
        naming: Strategy naming anonymous parameters from their ordinal.
        last_insert_id_sql: Query returning the identity generated by the last insert.
    """

    __slots__ = ("case_sensitive", "last_insert_id_sql", "name", "naming", "prefix")

    def __init__(
        self,
        name: str,
        prefix: str = "@",
        *,
        case_sensitive: bool = False,
        naming: OrdinalNaming = DEFAULT_NAMING,
        last_insert_id_sql: str = "SELECT @@IDENTITY",
    ) -> None:
        self.name = name
        self.prefix = prefix
        self.case_sensitive = case_sensitive
        self.naming = naming
        self.last_insert_id_sql = last_insert_id_sql

    def normalize_name(self, parameter_name: str) -> str:
        """Return the key under which ``parameter_name`` is compared."""
        return parameter_name if self.case_sensitive else parameter_name.casefold()

    def names_equal(self, first: str, second: str) -> bool:
        return self.normalize_name(first) == self.normalize_name(second)

    def render_named_token(self, parameter_name: str) -> str:
        return f"{self.prefix}{parameter_name}"

    def anonymous_name(self, ordinal: int) -> str:
        return self.naming(ordinal)

    def render_anonymous_token(self, ordinal: int) -> str:
        return self.render_named_token(self.anonymous_name(ordinal))

    def render_literal(self, value: Any) -> str:
        """Render ``value`` as inline SQL.

        Supports NULL, integers and strings (single-quoted, embedded quotes doubled).

        Raises:
            UnsupportedLiteralError: For any other kind of value, booleans included.
        """
        if value is None or value is DBNull:
            return "NULL"
        if isinstance(value, bool):
            raise UnsupportedLiteralError(type(value))
        if isinstance(value, int):
            return str(int(value))
        if isinstance(value, str):
            return "'" + value.replace("'", "''") + "'"
        raise UnsupportedLiteralError(type(value))

    def replace(self, **kwargs: Any) -> "DialectFormatter":
        """Return a copy of this dialect with some settings changed."""
        settings = {slot: getattr(self, slot) for slot in self.__slots__}
        settings.update(kwargs)
        dialect_name = settings.pop("name")
        prefix = settings.pop("prefix")
        return type(self)(dialect_name, prefix, **settings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DialectFormatter):
            return NotImplemented
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, slot) for slot in self.__slots__))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, prefix={self.prefix!r}, "
            f"case_sensitive={self.case_sensitive!r}, naming={self.naming!r})"
        )


def create_dialect(
    prefix: str,
    anonymous_prefix: Optional[str] = None,
    *,
    name: Optional[str] = None,
    case_sensitive: bool = False,
    last_insert_id_sql: str = "SELECT @@IDENTITY",
) -> DialectFormatter:
    """Create an ad hoc dialect.

    Args:
        prefix: Parameter sigil.
        anonymous_prefix: Text placed between the sigil and the ordinal of anonymous parameters.
        name: Optional registry name; defaults to ``custom<prefix>``.
        case_sensitive: Whether parameter names are case sensitive.
        last_insert_id_sql: Identity query for the engine.

    Returns:
        The new dialect. It is not registered.
    """
    return DialectFormatter(
        name or f"custom{prefix}",
        prefix,
        case_sensitive=case_sensitive,
        naming=OrdinalNaming(anonymous_prefix or ""),
        last_insert_id_sql=last_insert_id_sql,
    )


TSQL_DIALECT: Final[DialectFormatter] = DialectFormatter("tsql", "@")
SQLITE_DIALECT: Final[DialectFormatter] = DialectFormatter(
    "sqlite", "@", case_sensitive=True, last_insert_id_sql="SELECT last_insert_rowid()"
)
COLON_DIALECT: Final[DialectFormatter] = DialectFormatter(
    "colon", ":", case_sensitive=True, naming=OrdinalNaming("p"), last_insert_id_sql="SELECT last_insert_rowid()"
)

_registry_lock = threading.Lock()
_DIALECTS: "dict[str, DialectFormatter]" = {
    dialect.name: dialect for dialect in (TSQL_DIALECT, SQLITE_DIALECT, COLON_DIALECT)
}


def register_dialect(dialect: DialectFormatter, *, overwrite: bool = False) -> None:
    """Make ``dialect`` available by name.

    Raises:
        ValueError: If the name is taken and ``overwrite`` is False.
    """
    key = dialect.name.lower()
    with _registry_lock:
        if key in _DIALECTS and not overwrite:
            msg = f"Dialect {dialect.name!r} is already registered"
            raise ValueError(msg)
        _DIALECTS[key] = dialect


def get_dialect(dialect_name: str) -> DialectFormatter:
    """Look up a registered dialect.

    Raises:
        ConfigurationNotFoundError: If no dialect has that name.
    """
    try:
        return _DIALECTS[dialect_name.lower()]
    except KeyError:
        msg = f'Dialect "{dialect_name}" is not registered.'
        raise ConfigurationNotFoundError(msg, dialect_name) from None


def list_dialects() -> "list[str]":
    return sorted(_DIALECTS)
