"""Lazy result streams for unbuffered queries.

A stream owns the reader it was opened with. The reader is acquired on the
first fetch and released as soon as the stream is exhausted, fails, is
closed, or leaves a ``with`` block, whichever comes first. A stream can be
iterated only once.
"""

from collections.abc import AsyncIterator, Callable, Iterator, Sequence
from contextlib import AsyncExitStack, ExitStack
from typing import TYPE_CHECKING, Any, Generic, Optional

from typing_extensions import TypeVar

from sqlfacade.core.rows import Row, build_column_index
from sqlfacade.typing import DBNull

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager, AbstractContextManager

    from sqlfacade.protocols import AsyncCursor, Cursor

__all__ = ("AsyncRowStream", "RecordFactory", "RowStream", "make_record", "make_row")

RecordT = TypeVar("RecordT", default=Row)

RecordFactory = Callable[["tuple[str, ...]", Sequence[Any], "dict[str, int]"], Any]


def make_row(column_names: "tuple[str, ...]", record: "Sequence[Any]", index: "dict[str, int]") -> Row:
    return Row(column_names, record, index)


def make_record(column_names: "tuple[str, ...]", record: "Sequence[Any]", index: "dict[str, int]") -> "tuple[Any, ...]":
    return tuple(None if column_value is DBNull else column_value for column_value in record)


class RowStream(Generic[RecordT]):
    """Forward-only iterator over the rows of an open reader.

    Args:
        open_reader: Opens the reader; called once, on the first fetch.
        record_factory: Builds each item from the column names, the raw record
            and the shared column index.
    """

    __slots__ = ("_column_index", "_cursor", "_exhausted", "_open_reader", "_record_factory", "_stack")

    def __init__(
        self,
        open_reader: "Callable[[], AbstractContextManager[Cursor]]",
        record_factory: "RecordFactory" = make_row,
    ) -> None:
        self._open_reader = open_reader
        self._record_factory = record_factory
        self._stack: Optional[ExitStack] = None
        self._cursor: "Optional[Cursor]" = None
        self._column_index: dict[str, int] = {}
        self._exhausted = False

    @property
    def closed(self) -> bool:
        return self._exhausted

    def _start(self) -> "Cursor":
        with ExitStack() as stack:
            cursor = stack.enter_context(self._open_reader())
            self._column_index = build_column_index(cursor.column_names)
            self._stack = stack.pop_all()
        self._cursor = cursor
        return cursor

    def __iter__(self) -> "Iterator[RecordT]":
        return self

    def __next__(self) -> RecordT:
        if self._exhausted:
            raise StopIteration
        cursor = self._cursor
        try:
            if cursor is None:
                cursor = self._start()
            record = cursor.fetchone()
        except Exception:
            self.close()
            raise
        if record is None:
            self.close()
            raise StopIteration
        return self._record_factory(cursor.column_names, record, self._column_index)  # type: ignore[no-any-return]

    def fetchall(self) -> "list[RecordT]":
        """Drain the remaining rows into a list."""
        return list(self)

    def close(self) -> None:
        """Release the reader. Safe to call more than once."""
        self._exhausted = True
        self._cursor = None
        stack, self._stack = self._stack, None
        if stack is not None:
            stack.close()

    def __enter__(self) -> "RowStream[RecordT]":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class AsyncRowStream(Generic[RecordT]):
    """Asynchronous counterpart of :class:`RowStream`."""

    __slots__ = ("_column_index", "_cursor", "_exhausted", "_open_reader", "_record_factory", "_stack")

    def __init__(
        self,
        open_reader: "Callable[[], AbstractAsyncContextManager[AsyncCursor]]",
        record_factory: "RecordFactory" = make_row,
    ) -> None:
        self._open_reader = open_reader
        self._record_factory = record_factory
        self._stack: Optional[AsyncExitStack] = None
        self._cursor: "Optional[AsyncCursor]" = None
        self._column_index: dict[str, int] = {}
        self._exhausted = False

    @property
    def closed(self) -> bool:
        return self._exhausted

    async def _start(self) -> "AsyncCursor":
        async with AsyncExitStack() as stack:
            cursor = await stack.enter_async_context(self._open_reader())
            self._column_index = build_column_index(cursor.column_names)
            self._stack = stack.pop_all()
        self._cursor = cursor
        return cursor

    def __aiter__(self) -> "AsyncIterator[RecordT]":
        return self

    async def __anext__(self) -> RecordT:
        if self._exhausted:
            raise StopAsyncIteration
        cursor = self._cursor
        try:
            if cursor is None:
                cursor = await self._start()
            record = await cursor.fetchone()
        except Exception:
            await self.aclose()
            raise
        if record is None:
            await self.aclose()
            raise StopAsyncIteration
        return self._record_factory(cursor.column_names, record, self._column_index)  # type: ignore[no-any-return]

    async def fetchall(self) -> "list[RecordT]":
        """Drain the remaining rows into a list."""
        return [record async for record in self]

    async def aclose(self) -> None:
        """Release the reader. Safe to call more than once."""
        self._exhausted = True
        self._cursor = None
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()

    async def __aenter__(self) -> "AsyncRowStream[RecordT]":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
