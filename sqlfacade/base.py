# ruff: noqa: PLR6301
"""Database facades.

A facade wraps a single lazily opened connection. It moves through three
states: unopened, open once the first command needs the connection, and
closed. Closing is final and may be repeated; any other use after closing
raises :class:`~sqlfacade.exceptions.DatabaseClosedError`.

Facades hold no locks and are meant to be used by one caller at a time.
"""

import contextlib
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar, Union

from sqlfacade.config import FacadeConfig, get_global_config, get_provider
from sqlfacade.core.command import Command, CommandBuilder, CommandOptions, QueryOptions
from sqlfacade.core.conversion import convert_scalar
from sqlfacade.core.result import AsyncRowStream, RowStream, make_record, make_row
from sqlfacade.exceptions import (
    ConfigurationNotFoundError,
    DatabaseClosedError,
    ImproperConfigurationError,
    InvalidArgumentError,
    ProviderError,
    argument_null_or_empty,
)
from sqlfacade.observability import create_connection_event, notify_observers
from sqlfacade.typing import DBNull
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from sqlfacade.core.dialects import DialectFormatter
    from sqlfacade.core.result import RecordFactory
    from sqlfacade.core.rows import Row
    from sqlfacade.observability import CommandObserver, ConnectionObserver
    from sqlfacade.protocols import AsyncCommandExecutor, AsyncProviderFactory, ProviderFactory, SyncCommandExecutor
    from sqlfacade.typing import CommandText

__all__ = ("AsyncDatabase", "Database", "DatabaseOpener", "DatabaseState")

logger = get_logger("sqlfacade")

DatabaseT = TypeVar("DatabaseT", bound="Union[Database, AsyncDatabase]")


class DatabaseState(str, Enum):
    """Lifecycle of a facade's connection."""

    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class DatabaseOpener(Generic[DatabaseT]):
    """Deferred facade construction.

    Holds everything needed to open a database and opens a fresh one on every
    call to :meth:`open`.
    """

    __slots__ = ("_open",)

    def __init__(self, open_database: "Callable[[], DatabaseT]") -> None:
        self._open = open_database

    def open(self) -> DatabaseT:
        return self._open()

    def __call__(self) -> DatabaseT:
        return self._open()


def _resolve_settings(name: str, config: FacadeConfig) -> "tuple[str, Optional[str]]":
    if not name:
        raise argument_null_or_empty("name")
    settings = config.connection_string_resolver.resolve(name)
    if settings is None:
        msg = f'Connection string "{name}" was not found.'
        raise ConfigurationNotFoundError(msg, name)
    return settings.connection_string, settings.provider_name


class _DatabaseCommon:
    """State and command building shared by the sync and async facades."""

    __slots__ = (
        "_connection",
        "_connection_string",
        "_executor",
        "_provider",
        "_state",
        "command_observers",
        "config",
        "connection_observers",
        "dialect",
    )

    is_async: bool = False

    def __init__(
        self,
        connection_string: str,
        provider: "Union[ProviderFactory, AsyncProviderFactory]",
        config: "Optional[FacadeConfig]" = None,
    ) -> None:
        if not connection_string:
            raise argument_null_or_empty("connection_string")
        if provider is None:
            msg = "A provider factory is required."
            raise InvalidArgumentError(msg, "provider")
        if provider.is_async != self.is_async:
            kind = "asynchronous" if provider.is_async else "synchronous"
            msg = f"Provider {provider.name!r} is {kind} and cannot back {type(self).__name__}."
            raise ImproperConfigurationError(msg)
        self.config = config if config is not None else get_global_config()
        self.dialect: DialectFormatter = self.config.resolve_dialect(provider)
        self.command_observers: list[CommandObserver] = []
        self.connection_observers: list[ConnectionObserver] = []
        self._connection_string = connection_string
        self._provider = provider
        self._connection: Any = None
        self._executor: Any = None
        self._state = DatabaseState.UNOPENED

    @classmethod
    def _default_provider_name(cls, config: FacadeConfig) -> str:
        return config.default_provider

    @classmethod
    def _resolve_provider(
        cls,
        connection_string: str,
        provider_name: "Optional[str]",
        provider_factory: "Optional[Union[ProviderFactory, AsyncProviderFactory]]",
        config: FacadeConfig,
    ) -> "Union[ProviderFactory, AsyncProviderFactory]":
        if not connection_string:
            raise argument_null_or_empty("connection_string")
        if provider_name and provider_factory is not None:
            msg = "Specify either a provider name or a provider factory, not both."
            raise InvalidArgumentError(msg, "provider_factory")
        if provider_factory is not None:
            return provider_factory
        return get_provider(provider_name or cls._default_provider_name(config))

    @property
    def state(self) -> DatabaseState:
        return self._state

    @property
    def provider(self) -> "Union[ProviderFactory, AsyncProviderFactory]":
        return self._provider

    @property
    def is_closed(self) -> bool:
        return self._state is DatabaseState.CLOSED

    def add_command_observer(self, observer: "CommandObserver") -> None:
        """Observe commands built by this facade only."""
        self.command_observers.append(observer)

    def add_connection_observer(self, observer: "ConnectionObserver") -> None:
        """Observe the opening of this facade's connection only."""
        self.connection_observers.append(observer)

    def _ensure_not_closed(self) -> None:
        if self._state is DatabaseState.CLOSED:
            raise DatabaseClosedError()

    def command(self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None) -> Command:
        """Build a command without executing it.

        Observers are notified, exactly as for an executed command.

        Raises:
            InvalidArgumentError: If the command text is empty.
            SQLFormatError: If a template cannot be formatted.
        """
        self._ensure_not_closed()
        builder = CommandBuilder(
            self.dialect,
            self.config.naming,
            (*self.command_observers, *self.config.command_observers),
            self.config.default_timeout,
        )
        return builder.build(command_text, args, options)

    def _check_connection(self, connection: Any) -> Any:
        if connection is None:
            msg = f'Provider "{self._provider.name}" did not create a connection.'
            raise ProviderError(msg)
        return connection

    def _wrap_connection(self, connection: Any) -> "tuple[Any, Any]":
        """Apply the configured decorator and create the executor for ``connection``."""
        decorator = self.config.connection_decorator
        if decorator is not None:
            connection = decorator(connection)
        return connection, self._provider.create_executor(connection)

    def _attach(self, connection: Any, executor: Any) -> None:
        self._connection = connection
        self._executor = executor
        self._state = DatabaseState.OPEN
        logger.info("Opened %s connection", self._provider.name)
        notify_observers(
            (*self.connection_observers, *self.config.connection_observers),
            create_connection_event(connection, self._provider.name),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self._provider.name!r}, state={self._state.value!r})"


class Database(_DatabaseCommon):
    """Synchronous facade over one connection.

    Every operation takes either literal SQL text followed by positional
    arguments, or a single :class:`~sqlfacade.core.template.SQLTemplate`.
    Literal text refers to the arguments by ordinal, ``@0``, ``@1``...::

        with Database.open_connection_string(":memory:") as db:
            db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
            db.execute("INSERT INTO users (name) VALUES (@0)", "Ada")
            user = db.query_single("SELECT * FROM users WHERE id = @0", db.get_last_insert_id())

    Args:
        connection_string: Provider-specific connection string.
        provider: Factory creating the connection and its executor.
        config: Facade configuration; the process-wide one when omitted.
    """

    __slots__ = ()

    is_async = False

    @classmethod
    def open(cls, name: str, config: "Optional[FacadeConfig]" = None) -> "Database":
        """Open the database registered under ``name``.

        Raises:
            InvalidArgumentError: If ``name`` is empty.
            ConfigurationNotFoundError: If the resolver knows no such name.
        """
        config = config if config is not None else get_global_config()
        connection_string, provider_name = _resolve_settings(name, config)
        return cls.open_connection_string(connection_string, provider_name=provider_name, config=config)

    @classmethod
    def open_connection_string(
        cls,
        connection_string: str,
        provider_name: "Optional[str]" = None,
        provider_factory: "Optional[ProviderFactory]" = None,
        config: "Optional[FacadeConfig]" = None,
    ) -> "Database":
        """Open a database from a connection string.

        The provider is resolved now; the connection itself opens on first use.

        Args:
            connection_string: Provider-specific connection string.
            provider_name: Registered provider name. Defaults to ``config.default_provider``.
            provider_factory: Provider factory to use instead of a registered one.
            config: Facade configuration.

        Raises:
            InvalidArgumentError: If the connection string is empty or both a
                provider name and a provider factory are given.
            ConfigurationNotFoundError: If the provider name is unknown.
        """
        config = config if config is not None else get_global_config()
        provider = cls._resolve_provider(connection_string, provider_name, provider_factory, config)
        return cls(connection_string, provider, config)

    @classmethod
    def opener(cls, name: str, config: "Optional[FacadeConfig]" = None) -> "DatabaseOpener[Database]":
        return DatabaseOpener(lambda: cls.open(name, config))

    @classmethod
    def connection_string_opener(
        cls,
        connection_string: str,
        provider_name: "Optional[str]" = None,
        provider_factory: "Optional[ProviderFactory]" = None,
        config: "Optional[FacadeConfig]" = None,
    ) -> "DatabaseOpener[Database]":
        return DatabaseOpener(
            lambda: cls.open_connection_string(connection_string, provider_name, provider_factory, config)
        )

    @property
    def connection(self) -> Any:
        """The underlying connection, opened if necessary."""
        self._ensure_executor()
        return self._connection

    def _ensure_executor(self) -> "SyncCommandExecutor":
        self._ensure_not_closed()
        if self._executor is None:
            connection = self._check_connection(self._provider.create_connection(self._connection_string))
            try:
                wrapped, executor = self._wrap_connection(connection)
            except Exception:
                with contextlib.suppress(Exception):
                    connection.close()
                raise
            self._attach(wrapped, executor)
        return self._executor  # type: ignore[no-any-return]

    def execute(self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None) -> int:
        """Run a command and return the number of affected rows."""
        command = self.command(command_text, *args, options=options)
        return self._ensure_executor().execute(command)

    def _query(
        self,
        command_text: "CommandText",
        args: "Sequence[Any]",
        options: "Optional[CommandOptions]",
        record_factory: "RecordFactory",
    ) -> Any:
        command = self.command(command_text, *args, options=options)
        executor = self._ensure_executor()
        stream: RowStream[Any] = RowStream(lambda: executor.execute_reader(command), record_factory)
        if getattr(options, "unbuffered", False):
            return stream
        with stream:
            return tuple(stream)

    def query(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Union[tuple[Row, ...], RowStream[Row]]":
        """Run a query and return its rows.

        Rows are read eagerly into a tuple unless ``options`` requests an
        unbuffered query, in which case a :class:`~sqlfacade.core.result.RowStream`
        is returned. The stream keeps its cursor open until it is exhausted or closed.
        """
        return self._query(command_text, args, options, make_row)  # type: ignore[no-any-return]

    def query_stream(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "RowStream[Row]":
        """Run a query and stream its rows lazily."""
        timeout = options.timeout if options is not None else None
        return self._query(command_text, args, QueryOptions(timeout=timeout, unbuffered=True), make_row)  # type: ignore[no-any-return]

    def query_records(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Union[tuple[tuple[Any, ...], ...], RowStream[tuple[Any, ...]]]":
        """Like :meth:`query`, with each row as a plain tuple of column values."""
        return self._query(command_text, args, options, make_record)  # type: ignore[no-any-return]

    def query_single(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Optional[Row]":
        """Return the first row of a query, or None; remaining rows are not read."""
        command = self.command(command_text, *args, options=options)
        executor = self._ensure_executor()
        with RowStream(lambda: executor.execute_reader(command)) as stream:
            return next(stream, None)

    def query_scalar(
        self,
        command_text: "CommandText",
        *args: Any,
        as_type: "Optional[Any]" = None,
        options: "Optional[CommandOptions]" = None,
    ) -> Any:
        """Return the first column of the first row.

        Args:
            command_text: SQL text or template.
            *args: Positional arguments for literal text.
            as_type: Convert the value to this type; ``Optional[T]`` converts to ``T``.
                A database NULL is always returned as ``None``.
            options: Command options.

        Raises:
            SQLConversionError: If the value cannot be converted to ``as_type``.
        """
        command = self.command(command_text, *args, options=options)
        raw = self._ensure_executor().execute_scalar(command)
        if as_type is None:
            return None if raw is DBNull else raw
        return convert_scalar(raw, as_type)

    def get_last_insert_id(self) -> Any:
        """Return the identity generated by the last insert on this connection."""
        return self.query_scalar(self.dialect.last_insert_id_sql)

    def close(self) -> None:
        """Close the connection. Further calls do nothing."""
        if self._state is DatabaseState.CLOSED:
            return
        executor, self._executor = self._executor, None
        self._connection = None
        self._state = DatabaseState.CLOSED
        if executor is not None:
            executor.close()
            logger.debug("Closed %s connection", self._provider.name)

    def __enter__(self) -> "Database":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()


class AsyncDatabase(_DatabaseCommon):
    """Asynchronous facade over one connection.

    Mirrors :class:`Database`; every operation is a coroutine and unbuffered
    results are :class:`~sqlfacade.core.result.AsyncRowStream` objects.
    """

    __slots__ = ()

    is_async = True

    @classmethod
    def _default_provider_name(cls, config: FacadeConfig) -> str:
        return config.default_async_provider

    @classmethod
    def open(cls, name: str, config: "Optional[FacadeConfig]" = None) -> "AsyncDatabase":
        """Open the database registered under ``name``; see :meth:`Database.open`."""
        config = config if config is not None else get_global_config()
        connection_string, provider_name = _resolve_settings(name, config)
        return cls.open_connection_string(connection_string, provider_name=provider_name, config=config)

    @classmethod
    def open_connection_string(
        cls,
        connection_string: str,
        provider_name: "Optional[str]" = None,
        provider_factory: "Optional[AsyncProviderFactory]" = None,
        config: "Optional[FacadeConfig]" = None,
    ) -> "AsyncDatabase":
        """Open a database from a connection string; see :meth:`Database.open_connection_string`."""
        config = config if config is not None else get_global_config()
        provider = cls._resolve_provider(connection_string, provider_name, provider_factory, config)
        return cls(connection_string, provider, config)

    @classmethod
    def opener(cls, name: str, config: "Optional[FacadeConfig]" = None) -> "DatabaseOpener[AsyncDatabase]":
        return DatabaseOpener(lambda: cls.open(name, config))

    @classmethod
    def connection_string_opener(
        cls,
        connection_string: str,
        provider_name: "Optional[str]" = None,
        provider_factory: "Optional[AsyncProviderFactory]" = None,
        config: "Optional[FacadeConfig]" = None,
    ) -> "DatabaseOpener[AsyncDatabase]":
        return DatabaseOpener(
            lambda: cls.open_connection_string(connection_string, provider_name, provider_factory, config)
        )

    async def get_connection(self) -> Any:
        """Return the underlying connection, opening it if necessary."""
        await self._ensure_executor()
        return self._connection

    async def _ensure_executor(self) -> "AsyncCommandExecutor":
        self._ensure_not_closed()
        if self._executor is None:
            connection = self._check_connection(
                await self._provider.create_connection(self._connection_string)  # type: ignore[misc]
            )
            try:
                wrapped, executor = self._wrap_connection(connection)
            except Exception:
                with contextlib.suppress(Exception):
                    await connection.close()
                raise
            self._attach(wrapped, executor)
        return self._executor  # type: ignore[no-any-return]

    async def execute(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> int:
        command = self.command(command_text, *args, options=options)
        executor = await self._ensure_executor()
        return await executor.execute(command)

    async def _query(
        self,
        command_text: "CommandText",
        args: "Sequence[Any]",
        options: "Optional[CommandOptions]",
        record_factory: "RecordFactory",
    ) -> Any:
        command = self.command(command_text, *args, options=options)
        executor = await self._ensure_executor()
        stream: AsyncRowStream[Any] = AsyncRowStream(lambda: executor.execute_reader(command), record_factory)
        if getattr(options, "unbuffered", False):
            return stream
        async with stream:
            return tuple(await stream.fetchall())

    async def query(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Union[tuple[Row, ...], AsyncRowStream[Row]]":
        """Run a query; see :meth:`Database.query`."""
        return await self._query(command_text, args, options, make_row)  # type: ignore[no-any-return]

    async def query_stream(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "AsyncRowStream[Row]":
        """Run a query and stream its rows lazily."""
        timeout = options.timeout if options is not None else None
        return await self._query(command_text, args, QueryOptions(timeout=timeout, unbuffered=True), make_row)  # type: ignore[no-any-return]

    async def query_records(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Union[tuple[tuple[Any, ...], ...], AsyncRowStream[tuple[Any, ...]]]":
        return await self._query(command_text, args, options, make_record)  # type: ignore[no-any-return]

    async def query_single(
        self, command_text: "CommandText", *args: Any, options: "Optional[CommandOptions]" = None
    ) -> "Optional[Row]":
        command = self.command(command_text, *args, options=options)
        executor = await self._ensure_executor()
        async with AsyncRowStream(lambda: executor.execute_reader(command)) as stream:
            async for row in stream:
                return row  # type: ignore[no-any-return]
        return None

    async def query_scalar(
        self,
        command_text: "CommandText",
        *args: Any,
        as_type: "Optional[Any]" = None,
        options: "Optional[CommandOptions]" = None,
    ) -> Any:
        """Return the first column of the first row; see :meth:`Database.query_scalar`."""
        command = self.command(command_text, *args, options=options)
        executor = await self._ensure_executor()
        raw = await executor.execute_scalar(command)
        if as_type is None:
            return None if raw is DBNull else raw
        return convert_scalar(raw, as_type)

    async def get_last_insert_id(self) -> Any:
        return await self.query_scalar(self.dialect.last_insert_id_sql)

    async def close(self) -> None:
        if self._state is DatabaseState.CLOSED:
            return
        executor, self._executor = self._executor, None
        self._connection = None
        self._state = DatabaseState.CLOSED
        if executor is not None:
            await executor.close()
            logger.debug("Closed %s connection", self._provider.name)

    async def __aenter__(self) -> "AsyncDatabase":
        return self

    async def __aexit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        await self.close()
