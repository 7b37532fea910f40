"""Conversion of raw scalar results to requested Python types.

Conversions are culture-invariant: numbers and dates are read and written in
their canonical ``str()`` / ISO 8601 forms regardless of locale.
"""

import datetime
from collections.abc import Callable
from decimal import Decimal
from typing import Any, Final, Optional, TypeVar, Union, cast, get_args, get_origin
from uuid import UUID

from sqlfacade.exceptions import SQLConversionError
from sqlfacade.typing import DBNull

__all__ = ("convert_scalar", "unwrap_optional")

T = TypeVar("T")

_TRUE_STRINGS: Final = frozenset({"true", "1", "yes", "y", "t", "on"})
_FALSE_STRINGS: Final = frozenset({"false", "0", "no", "n", "f", "off"})


def unwrap_optional(target_type: Any) -> Any:
    """Return ``T`` for ``Optional[T]``; any other type is returned unchanged."""
    origin = get_origin(target_type)
    if origin is Union or (origin is not None and getattr(origin, "__name__", "") == "UnionType"):
        members = [member for member in get_args(target_type) if member is not type(None)]
        if len(members) == 1:
            return members[0]
    return target_type


def _to_int(raw: Any) -> int:
    if isinstance(raw, float):
        return round(raw)
    if isinstance(raw, Decimal):
        return int(raw.to_integral_value())
    if isinstance(raw, (bytes, bytearray)):
        return int(raw.decode("ascii").strip())
    if isinstance(raw, str):
        return int(raw.strip())
    return int(raw)


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        msg = f"String was not recognized as a valid boolean: {raw!r}"
        raise ValueError(msg)
    return bool(raw)


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, float):
        return Decimal(repr(raw))
    return Decimal(raw if not isinstance(raw, str) else raw.strip())


def _to_str(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    if isinstance(raw, (datetime.date, datetime.time)):
        return raw.isoformat()
    return str(raw)


def _to_datetime(raw: Any) -> datetime.datetime:
    if isinstance(raw, datetime.date):
        return datetime.datetime(raw.year, raw.month, raw.day)
    return datetime.datetime.fromisoformat(str(raw).strip())


def _to_date(raw: Any) -> datetime.date:
    if isinstance(raw, datetime.datetime):
        return raw.date()
    return datetime.date.fromisoformat(str(raw).strip()[:10])


def _to_time(raw: Any) -> datetime.time:
    if isinstance(raw, datetime.datetime):
        return raw.time()
    return datetime.time.fromisoformat(str(raw).strip())


def _to_uuid(raw: Any) -> UUID:
    if isinstance(raw, (bytes, bytearray)):
        return UUID(bytes=bytes(raw))
    return UUID(str(raw))


def _to_bytes(raw: Any) -> bytes:
    if isinstance(raw, str):
        return raw.encode("utf-8")
    return bytes(raw)


_CONVERTERS: "Final[dict[type, Callable[[Any], Any]]]" = {
    bool: _to_bool,
    int: _to_int,
    float: float,
    Decimal: _to_decimal,
    str: _to_str,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    datetime.time: _to_time,
    UUID: _to_uuid,
    bytes: _to_bytes,
}


def convert_scalar(raw: Any, target_type: "type[T]") -> "Optional[T]":
    """Convert a raw scalar result to ``target_type``.

    ``None`` and ``DBNull`` always convert to ``None``, whatever the target.
    ``Optional[X]`` targets convert with ``X``. Values whose type is exactly
    the target are returned as they are.

    Args:
        raw: The value returned by the executor.
        target_type: The requested type.

    Raises:
        SQLConversionError: If the value cannot be converted.

    Returns:
        The converted value, or ``None`` for a database NULL.
    """
    if raw is None or raw is DBNull:
        return None
    target = unwrap_optional(target_type)
    if target is Any or target is object:
        return cast("T", raw)
    if type(raw) is target:
        return cast("T", raw)
    converter = _CONVERTERS.get(target)
    if converter is None:
        if isinstance(target, type) and isinstance(raw, target):
            return cast("T", raw)
        if not isinstance(target, type):
            msg = f"Cannot convert to {target!r}: not a concrete type"
            raise SQLConversionError(msg)
        converter = target
    try:
        return cast("T", converter(raw))
    except (TypeError, ValueError, ArithmeticError) as e:
        msg = f"Cannot convert {type(raw).__name__} value {raw!r} to {getattr(target, '__name__', target)}"
        raise SQLConversionError(msg) from e
