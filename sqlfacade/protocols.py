"""Runtime-checkable protocols for the collaborators a facade drives.

A provider factory turns a connection string into a connection and wraps that
connection in a command executor. Executors run finished
:class:`~sqlfacade.core.command.Command` objects and hand back counts, scalars
or cursors.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager, AbstractContextManager

    from sqlfacade.core.command import Command
    from sqlfacade.core.dialects import DialectFormatter

__all__ = (
    "AsyncCommandExecutor",
    "AsyncCursor",
    "AsyncProviderFactory",
    "ConnectionStringResolver",
    "Cursor",
    "ProviderFactory",
    "SyncCommandExecutor",
)


@runtime_checkable
class Cursor(Protocol):
    """Forward-only access to the rows of one result."""

    @property
    def column_names(self) -> "tuple[str, ...]":
        """Names of the result columns, in order."""
        ...

    def fetchone(self) -> "Optional[Sequence[Any]]":
        """Return the next record, or None when exhausted."""
        ...

    def fetchall(self) -> "list[Sequence[Any]]":
        """Return all remaining records."""
        ...


@runtime_checkable
class AsyncCursor(Protocol):
    """Asynchronous counterpart of :class:`Cursor`."""

    @property
    def column_names(self) -> "tuple[str, ...]": ...

    async def fetchone(self) -> "Optional[Sequence[Any]]": ...

    async def fetchall(self) -> "list[Sequence[Any]]": ...


@runtime_checkable
class SyncCommandExecutor(Protocol):
    """Runs commands over one open connection."""

    def execute(self, command: "Command") -> int:
        """Run ``command`` and return the number of affected rows."""
        ...

    def execute_scalar(self, command: "Command") -> Any:
        """Run ``command`` and return the first column of the first row, or None."""
        ...

    def execute_reader(self, command: "Command") -> "AbstractContextManager[Cursor]":
        """Run ``command`` and yield a cursor over its rows; the cursor is closed on exit."""
        ...

    def close(self) -> None:
        """Close the underlying connection."""
        ...


@runtime_checkable
class AsyncCommandExecutor(Protocol):
    """Asynchronous counterpart of :class:`SyncCommandExecutor`."""

    async def execute(self, command: "Command") -> int: ...

    async def execute_scalar(self, command: "Command") -> Any: ...

    def execute_reader(self, command: "Command") -> "AbstractAsyncContextManager[AsyncCursor]": ...

    async def close(self) -> None: ...


@runtime_checkable
class ProviderFactory(Protocol):
    """Creates connections and executors for one kind of database."""

    name: str
    is_async: bool
    dialect: "DialectFormatter"

    def create_connection(self, connection_string: str) -> Any:
        """Create an open connection, or return None if the provider cannot."""
        ...

    def create_executor(self, connection: Any) -> SyncCommandExecutor:
        """Wrap ``connection`` in an executor."""
        ...


@runtime_checkable
class AsyncProviderFactory(Protocol):
    """Creates connections and executors for an asynchronous database client."""

    name: str
    is_async: bool
    dialect: "DialectFormatter"

    async def create_connection(self, connection_string: str) -> Any: ...

    def create_executor(self, connection: Any) -> AsyncCommandExecutor: ...


@runtime_checkable
class ConnectionStringResolver(Protocol):
    """Looks up connection settings by name."""

    def resolve(self, name: str) -> Any:
        """Return the settings registered under ``name``, or None."""
        ...
