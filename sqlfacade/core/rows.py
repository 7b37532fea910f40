"""Row projection over result cursors."""

from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union, overload

from mypy_extensions import mypyc_attr

from sqlfacade.typing import DBNull

if TYPE_CHECKING:
    from sqlfacade.driver import Cursor

__all__ = ("Row", "build_column_index", "project_row")


def _from_db(column_value: Any) -> Any:
    return None if column_value is DBNull else column_value


def build_column_index(column_names: "Sequence[str]") -> "dict[str, int]":
    """Map each column name to its first ordinal, plus a casefolded alias.

    Exact names are registered first so that a case-insensitive lookup never
    shadows an exact match.
    """
    index: dict[str, int] = {}
    for ordinal, column_name in enumerate(column_names):
        index.setdefault(column_name, ordinal)
    for ordinal, column_name in enumerate(column_names):
        index.setdefault(f"\x00{column_name.casefold()}", ordinal)
    return index


@mypyc_attr(allow_interpreted_subclasses=False)
class Row(Mapping[str, Any]):
    """A read-only result row addressable by column name or ordinal.

    Name lookup is exact first, then case-insensitive. Iterating a row yields
    its column names, as for any mapping; use :meth:`values` or ordinal
    indexing for the data. Database NULLs read as ``None``.
    """

    __slots__ = ("_column_names", "_index", "_values")

    def __init__(
        self,
        column_names: "Sequence[str]",
        values: "Sequence[Any]",
        index: "Optional[dict[str, int]]" = None,
    ) -> None:
        self._column_names = tuple(column_names)
        self._values = tuple(_from_db(column_value) for column_value in values)
        self._index = index if index is not None else build_column_index(self._column_names)

    @property
    def column_names(self) -> "tuple[str, ...]":
        return self._column_names

    def get_by_ordinal(self, ordinal: int) -> Any:
        return self._values[ordinal]

    def get_by_name(self, column_name: str) -> Any:
        """Return the value of ``column_name``.

        Raises:
            KeyError: If the row has no such column.
        """
        ordinal = self._index.get(column_name)
        if ordinal is None:
            ordinal = self._index.get(f"\x00{column_name.casefold()}")
        if ordinal is None:
            raise KeyError(column_name)
        return self._values[ordinal]

    @overload
    def __getitem__(self, key: int) -> Any: ...

    @overload
    def __getitem__(self, key: str) -> Any: ...

    def __getitem__(self, key: "Union[int, str]") -> Any:
        if isinstance(key, int):
            return self._values[key]
        return self.get_by_name(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key in self._index or f"\x00{key.casefold()}" in self._index

    def __iter__(self) -> "Iterator[str]":
        return iter(self._column_names)

    def __len__(self) -> int:
        return len(self._column_names)

    def as_tuple(self) -> "tuple[Any, ...]":
        return self._values

    def values(self) -> "tuple[Any, ...]":  # type: ignore[override]
        return self._values

    def items(self) -> "tuple[tuple[str, Any], ...]":  # type: ignore[override]
        return tuple(zip(self._column_names, self._values))

    def as_dict(self) -> "dict[str, Any]":
        """Return the row as a dict.

        Duplicate column names collapse to one key holding the first value,
        matching name lookup. Use :meth:`items` to keep every column.
        """
        row_dict: dict[str, Any] = {}
        for column_name, column_value in zip(self._column_names, self._values):
            row_dict.setdefault(column_name, column_value)
        return row_dict

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._column_names == other._column_names and self._values == other._values
        return super().__eq__(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{column_name}={column_value!r}" for column_name, column_value in self.items())
        return f"Row({fields})"


def project_row(cursor: "Cursor", values: "Sequence[Any]", index: "Optional[dict[str, int]]" = None) -> Row:
    """Build a :class:`Row` for one fetched record of ``cursor``."""
    return Row(cursor.column_names, values, index)
