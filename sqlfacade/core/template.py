"""Structured SQL templates.

A template is a ``str.format`` format string plus the values for its
placeholders. The kind of each value decides how it ends up in the command:

- :class:`SQLLiteral`: inlined as a quoted literal, never bound
- :class:`SQLNamed`: bound under a caller-chosen name, reusable in the same template
- :class:`SQLRef`: the token of a name bound earlier in the same template
- :class:`SQLTemplate`: a nested template, formatted and spliced in as text
- :class:`SQLList`: one fresh parameter per item, joined by a separator
- anything else: bound as an anonymous parameter

Example::

    SQLTemplate(
        "SELECT * FROM users WHERE tenant = {0} AND id IN {1}",
        SQLNamed("tenant", 7),
        SQLList([1, 2, 3], before="(", after=")"),
    )
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

from mypy_extensions import mypyc_attr

from sqlfacade.exceptions import argument_null_or_empty

__all__ = ("SQLList", "SQLLiteral", "SQLNamed", "SQLRef", "SQLTemplate")


@dataclass(frozen=True)
class SQLLiteral:
    """A value rendered inline by the dialect instead of being bound."""

    value: Any


@dataclass(frozen=True)
class SQLNamed:
    """A value bound under an explicit parameter name."""

    name: str
    value: Any

    def __post_init__(self) -> None:
        if not self.name:
            raise argument_null_or_empty("name")


@dataclass(frozen=True)
class SQLRef:
    """A reference to a named parameter bound earlier in the same template."""

    name: str


@dataclass(frozen=True, init=False)
class SQLList:
    """Values expanded into a sequence of parameter tokens.

    Attributes:
        values: The items; each becomes its own parameter.
        separator: Text placed between tokens.
        before: Text placed before the first token when there is at least one item.
        after: Text placed after the last token when there is at least one item.
        naming: Optional ``str.format`` pattern receiving the item index, used to
            name the parameters (``"id{0}"`` gives ``id0``, ``id1``...). Items are
            bound anonymously when omitted.
    """

    values: "tuple[Any, ...]"
    separator: str = ","
    before: Optional[str] = None
    after: Optional[str] = None
    naming: Optional[str] = None

    def __init__(
        self,
        values: "Iterable[Any]",
        separator: str = ",",
        before: Optional[str] = None,
        after: Optional[str] = None,
        *,
        naming: Optional[str] = None,
    ) -> None:
        object.__setattr__(self, "values", tuple(values))
        object.__setattr__(self, "separator", separator)
        object.__setattr__(self, "before", before)
        object.__setattr__(self, "after", after)
        object.__setattr__(self, "naming", naming)


@mypyc_attr(allow_interpreted_subclasses=False)
class SQLTemplate:
    """A format string and the values for its placeholders.

    Positional placeholders (``{0}``) take positional arguments and keyword
    placeholders (``{name}``) take keyword arguments. Literal braces are written
    ``{{`` and ``}}``. Arguments are processed in order, positional ones first,
    which fixes the order of the resulting parameters.

    Args:
        format_string: The SQL text with placeholders.
        *arguments: Values for positional placeholders.
        **keyword_arguments: Values for keyword placeholders.
    """

    __slots__ = ("arguments", "format_string", "keyword_arguments")

    def __init__(self, format_string: str, *arguments: Any, **keyword_arguments: Any) -> None:
        self.format_string = format_string
        self.arguments: tuple[Any, ...] = arguments
        self.keyword_arguments: Mapping[str, Any] = MappingProxyType(dict(keyword_arguments))

    @property
    def argument_count(self) -> int:
        return len(self.arguments) + len(self.keyword_arguments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SQLTemplate):
            return NotImplemented
        return (
            self.format_string == other.format_string
            and self.arguments == other.arguments
            and dict(self.keyword_arguments) == dict(other.keyword_arguments)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = [repr(self.format_string)]
        parts.extend(repr(argument) for argument in self.arguments)
        parts.extend(f"{key}={argument!r}" for key, argument in self.keyword_arguments.items())
        return f"SQLTemplate({', '.join(parts)})"
