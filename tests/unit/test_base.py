"""Unit tests for the synchronous database facade."""

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from sqlfacade import (
    Database,
    DatabaseOpener,
    DatabaseState,
    FacadeConfig,
    MappingConnectionStringResolver,
    QueryOptions,
    Row,
    RowStream,
    SQLList,
    SQLNamed,
    SQLRef,
    SQLTemplate,
    param,
)
from sqlfacade.adapters.sqlite import SqliteProviderFactory
from sqlfacade.core.command import Command, CommandOptions
from sqlfacade.core.dialects import SQLITE_DIALECT, TSQL_DIALECT
from sqlfacade.exceptions import (
    ConfigurationNotFoundError,
    DatabaseClosedError,
    ImproperConfigurationError,
    InvalidArgumentError,
    ParameterConflictError,
    ProviderError,
    SQLConversionError,
)
from sqlfacade.observability import CommandEvent, ConnectionEvent
from sqlfacade.typing import DBNull


class FakeCursor:
    def __init__(self, column_names: "tuple[str, ...]", records: "list[Sequence[Any]]") -> None:
        self.column_names = column_names
        self._records = list(records)

    def fetchone(self) -> "Optional[Sequence[Any]]":
        return self._records.pop(0) if self._records else None

    def fetchall(self) -> "list[Sequence[Any]]":
        records, self._records = self._records, []
        return records


class FakeExecutor:
    def __init__(self, records: "Optional[list[Sequence[Any]]]" = None, scalar: Any = None) -> None:
        self.records = records if records is not None else [(1, "a"), (2, "b")]
        self.scalar = scalar
        self.commands: list[Command] = []
        self.readers_opened = 0
        self.readers_closed = 0
        self.closed = 0

    def execute(self, command: Command) -> int:
        self.commands.append(command)
        return 3

    def execute_scalar(self, command: Command) -> Any:
        self.commands.append(command)
        return self.scalar

    @contextmanager
    def execute_reader(self, command: Command) -> "Iterator[FakeCursor]":
        self.commands.append(command)
        self.readers_opened += 1
        try:
            yield FakeCursor(("id", "name"), self.records)
        finally:
            self.readers_closed += 1

    def close(self) -> None:
        self.closed += 1


class FakeProvider:
    name = "fake"
    is_async = False
    dialect = TSQL_DIALECT

    def __init__(self, executor: "Optional[FakeExecutor]" = None, connection: Any = "connection") -> None:
        self.executor = executor or FakeExecutor()
        self.connection = connection
        self.connections_created = 0

    def create_connection(self, connection_string: str) -> Any:
        self.connections_created += 1
        return self.connection

    def create_executor(self, connection: Any) -> FakeExecutor:
        return self.executor


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def db(provider: FakeProvider) -> Database:
    return Database.open_connection_string("fake-db", provider_factory=provider)


@pytest.fixture
def sqlite_db() -> "Iterator[Database]":
    with Database.open_connection_string(":memory:") as database:
        database.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, score REAL)")
        database.execute("INSERT INTO users (name, score) VALUES (@0, @1)", "ada", 9.5)
        database.execute("INSERT INTO users (name, score) VALUES (@0, @1)", "bob", None)
        yield database


def test_connection_opens_on_first_command(db: Database, provider: FakeProvider) -> None:
    assert db.state is DatabaseState.UNOPENED
    assert provider.connections_created == 0

    db.execute("DELETE FROM t")
    db.execute("DELETE FROM u")

    assert db.state is DatabaseState.OPEN
    assert provider.connections_created == 1
    assert db.connection == "connection"


def test_connection_event_fires_once(provider: FakeProvider) -> None:
    events: list[ConnectionEvent] = []
    config = FacadeConfig().with_connection_observer(events.append)
    database = Database.open_connection_string("fake-db", provider_factory=provider, config=config)

    database.execute("SELECT 1")
    database.query_scalar("SELECT 1")

    assert len(events) == 1
    assert events[0].provider == "fake"
    assert events[0].connection == "connection"


def test_instance_observers_run_before_config_observers(provider: FakeProvider) -> None:
    calls: list[str] = []
    config = FacadeConfig(
        command_observers=(lambda event: calls.append("config:command"),),
        connection_observers=(lambda event: calls.append("config:connection"),),
    )
    database = Database.open_connection_string("fake-db", provider_factory=provider, config=config)
    database.add_command_observer(lambda event: calls.append("instance:command"))
    database.add_connection_observer(lambda event: calls.append("instance:connection"))

    database.execute("SELECT 1")

    assert calls == ["instance:command", "config:command", "instance:connection", "config:connection"]


def test_execute_passes_finished_command(db: Database, provider: FakeProvider) -> None:
    assert db.execute("UPDATE t SET a = @0 WHERE b = @1", 1, None) == 3

    command = provider.executor.commands[0]
    assert command.command_text == "UPDATE t SET a = @0 WHERE b = @1"
    assert [parameter.value for parameter in command.parameters] == [1, DBNull]


def test_formatting_errors_happen_before_any_io(db: Database, provider: FakeProvider) -> None:
    with pytest.raises(ParameterConflictError):
        db.query(SQLTemplate("{0} {1}", SQLNamed("a", 1), SQLNamed("a", 2)))

    assert provider.connections_created == 0
    assert db.state is DatabaseState.UNOPENED


def test_template_with_arguments_is_rejected(db: Database) -> None:
    with pytest.raises(InvalidArgumentError):
        db.execute(SQLTemplate("{0}", 1), 2)


def test_empty_command_text_is_rejected(db: Database) -> None:
    with pytest.raises(InvalidArgumentError):
        db.execute("")


def test_buffered_query_returns_rows(db: Database, provider: FakeProvider) -> None:
    rows = db.query("SELECT id, name FROM t")

    assert isinstance(rows, tuple)
    assert [row["name"] for row in rows] == ["a", "b"]
    assert provider.executor.readers_closed == 1


def test_unbuffered_query_returns_lazy_stream(db: Database, provider: FakeProvider) -> None:
    stream = db.query("SELECT id, name FROM t", options=QueryOptions(unbuffered=True))

    assert isinstance(stream, RowStream)
    assert provider.executor.readers_opened == 0
    assert [row["id"] for row in stream] == [1, 2]
    assert provider.executor.readers_closed == 1


def test_query_stream(db: Database, provider: FakeProvider) -> None:
    with db.query_stream("SELECT id, name FROM t", options=CommandOptions(timeout=4)) as stream:
        first = next(stream)

    assert first["id"] == 1
    assert provider.executor.readers_closed == 1
    assert provider.executor.commands[0].timeout == 4


def test_query_records(db: Database) -> None:
    assert db.query_records("SELECT id, name FROM t") == ((1, "a"), (2, "b"))


def test_query_single_reads_one_row_and_closes(db: Database, provider: FakeProvider) -> None:
    row = db.query_single("SELECT id, name FROM t")

    assert row is not None
    assert row["name"] == "a"
    assert provider.executor.readers_closed == 1


def test_query_single_without_rows() -> None:
    database = Database.open_connection_string("fake-db", provider_factory=FakeProvider(FakeExecutor(records=[])))

    assert database.query_single("SELECT 1") is None


def test_query_scalar_raw_and_converted() -> None:
    executor = FakeExecutor(scalar="42")
    database = Database.open_connection_string("fake-db", provider_factory=FakeProvider(executor))

    assert database.query_scalar("SELECT 1") == "42"
    assert database.query_scalar("SELECT 1", as_type=int) == 42
    assert database.query_scalar("SELECT 1", as_type=Optional[int]) == 42


def test_query_scalar_null() -> None:
    database = Database.open_connection_string(
        "fake-db", provider_factory=FakeProvider(FakeExecutor(scalar=DBNull))
    )

    assert database.query_scalar("SELECT NULL") is None
    assert database.query_scalar("SELECT NULL", as_type=Optional[int]) is None


def test_query_scalar_conversion_failure() -> None:
    database = Database.open_connection_string("fake-db", provider_factory=FakeProvider(FakeExecutor(scalar="x")))

    with pytest.raises(SQLConversionError):
        database.query_scalar("SELECT 1", as_type=int)


def test_get_last_insert_id_uses_dialect_query(db: Database, provider: FakeProvider) -> None:
    provider.executor.scalar = 7

    assert db.get_last_insert_id() == 7
    assert provider.executor.commands[-1].command_text == "SELECT @@IDENTITY"


def test_command_builds_without_opening(db: Database, provider: FakeProvider) -> None:
    events: list[CommandEvent] = []
    db.add_command_observer(events.append)

    command = db.command("SELECT @0", param(5, name="x"), options=CommandOptions(timeout=2))

    assert command.parameter_names == ("x",)
    assert command.timeout == 2
    assert events[0].command is command
    assert provider.connections_created == 0


def test_default_timeout_from_config(provider: FakeProvider) -> None:
    database = Database.open_connection_string(
        "fake-db", provider_factory=provider, config=FacadeConfig(default_timeout=15)
    )

    assert database.command("SELECT 1").timeout == 15


def test_close_is_final_and_idempotent(db: Database, provider: FakeProvider) -> None:
    db.execute("SELECT 1")

    db.close()
    db.close()

    assert db.state is DatabaseState.CLOSED
    assert db.is_closed
    assert provider.executor.closed == 1
    with pytest.raises(DatabaseClosedError):
        db.execute("SELECT 1")
    with pytest.raises(DatabaseClosedError):
        db.command("SELECT 1")


def test_close_before_open_creates_nothing(db: Database, provider: FakeProvider) -> None:
    db.close()

    assert provider.connections_created == 0
    with pytest.raises(DatabaseClosedError):
        db.query("SELECT 1")


def test_context_manager_closes(provider: FakeProvider) -> None:
    with Database.open_connection_string("fake-db", provider_factory=provider) as database:
        database.execute("SELECT 1")

    assert database.state is DatabaseState.CLOSED
    assert provider.executor.closed == 1


def test_provider_without_connection_raises() -> None:
    database = Database.open_connection_string("fake-db", provider_factory=FakeProvider(connection=None))

    with pytest.raises(ProviderError):
        database.execute("SELECT 1")
    assert database.state is DatabaseState.UNOPENED


def test_connection_decorator_wraps_new_connections(provider: FakeProvider) -> None:
    decorator = MagicMock(return_value="wrapped")
    database = Database.open_connection_string(
        "fake-db", provider_factory=provider, config=FacadeConfig(connection_decorator=decorator)
    )

    database.execute("SELECT 1")
    database.execute("SELECT 2")

    decorator.assert_called_once_with("connection")
    assert database.connection == "wrapped"


def test_failed_decorator_closes_new_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[sqlite3.Connection] = []
    connect = sqlite3.connect

    def recording_connect(*args: Any, **kwargs: Any) -> sqlite3.Connection:
        connection = connect(*args, **kwargs)
        opened.append(connection)
        return connection

    monkeypatch.setattr(sqlite3, "connect", recording_connect)
    database = Database.open_connection_string(
        ":memory:", config=FacadeConfig(connection_decorator=MagicMock(side_effect=RuntimeError("decorator failed")))
    )

    for _ in range(2):
        with pytest.raises(RuntimeError, match="decorator failed"):
            database.execute("SELECT 1")
    database.close()

    assert len(opened) == 2
    for connection in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            connection.execute("SELECT 1")


def test_duplicate_argument_names_fail_before_opening(db: Database, provider: FakeProvider) -> None:
    with pytest.raises(InvalidArgumentError, match='"1"'):
        db.execute("UPDATE t SET a = @1", param("a", name="1"), "b")

    assert provider.connections_created == 0


def test_failed_executor_creation_closes_new_connection() -> None:
    connection = MagicMock()
    provider = FakeProvider(connection=connection)
    provider.create_executor = MagicMock(side_effect=ValueError("no executor"))  # type: ignore[method-assign]
    database = Database.open_connection_string("fake-db", provider_factory=provider)

    with pytest.raises(ValueError, match="no executor"):
        database.execute("SELECT 1")

    connection.close.assert_called_once_with()
    assert database.state is DatabaseState.UNOPENED


def test_dialect_from_config_overrides_provider(provider: FakeProvider) -> None:
    database = Database.open_connection_string(
        "fake-db", provider_factory=provider, config=FacadeConfig(dialect=SQLITE_DIALECT)
    )

    assert database.dialect is SQLITE_DIALECT
    assert database.get_last_insert_id() is None
    assert provider.executor.commands[-1].command_text == "SELECT last_insert_rowid()"


def test_open_connection_string_validation(provider: FakeProvider) -> None:
    with pytest.raises(InvalidArgumentError):
        Database.open_connection_string("")
    with pytest.raises(InvalidArgumentError):
        Database.open_connection_string("x", provider_name="sqlite", provider_factory=provider)  # type: ignore[arg-type]
    with pytest.raises(ConfigurationNotFoundError):
        Database.open_connection_string("x", provider_name="no-such-provider")


def test_async_provider_is_rejected() -> None:
    with pytest.raises(ImproperConfigurationError):
        Database.open_connection_string(":memory:", provider_name="aiosqlite")


def test_open_by_name() -> None:
    config = FacadeConfig(connection_string_resolver=MappingConnectionStringResolver({"Main": ":memory:"}))

    with Database.open("main", config) as database:
        assert isinstance(database.provider, SqliteProviderFactory)
        assert database.query_scalar("SELECT 1 + 1") == 2


def test_open_by_name_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SQLFACADE_CONNECTION_REPORTS_DB", ":memory:")
    monkeypatch.setenv("SQLFACADE_PROVIDER_REPORTS_DB", "sqlite")

    with Database.open("reports-db") as database:
        assert database.query_scalar("SELECT 3") == 3


def test_open_unknown_name() -> None:
    with pytest.raises(ConfigurationNotFoundError, match='Connection string "missing" was not found.'):
        Database.open("missing")
    with pytest.raises(InvalidArgumentError):
        Database.open("")


def test_openers_create_fresh_databases(provider: FakeProvider) -> None:
    opener = Database.connection_string_opener("fake-db", provider_factory=provider)

    first = opener.open()
    second = opener()

    assert isinstance(opener, DatabaseOpener)
    assert isinstance(first, Database)
    assert first is not second


def test_named_opener_resolves_on_open(monkeypatch: pytest.MonkeyPatch) -> None:
    opener = Database.opener("late")
    monkeypatch.setenv("SQLFACADE_CONNECTION_LATE", ":memory:")

    with opener.open() as database:
        assert database.query_scalar("SELECT 'ok'") == "ok"


def test_sqlite_round_trip(sqlite_db: Database) -> None:
    rows = sqlite_db.query("SELECT id, name, score FROM users ORDER BY id")

    assert isinstance(rows[0], Row)
    assert [(row["id"], row["NAME"], row["score"]) for row in rows] == [(1, "ada", 9.5), (2, "bob", None)]
    assert sqlite_db.get_last_insert_id() == 2


def test_sqlite_templates(sqlite_db: Database) -> None:
    names = sqlite_db.query_records(
        SQLTemplate("SELECT name FROM users WHERE id IN {0} ORDER BY id", SQLList([1, 2], before="(", after=")"))
    )
    matched = sqlite_db.query_scalar(
        SQLTemplate(
            "SELECT COUNT(*) FROM users WHERE name = {0} OR upper(name) = upper({1})", SQLNamed("n", "ada"), SQLRef("n")
        )
    )

    assert names == (("ada",), ("bob",))
    assert matched == 1


def test_sqlite_query_single_and_scalar_conversion(sqlite_db: Database) -> None:
    row = sqlite_db.query_single("SELECT * FROM users WHERE name = @0", "bob")

    assert row is not None
    assert row["score"] is None
    assert sqlite_db.query_scalar("SELECT score FROM users WHERE id = @0", 2, as_type=Optional[float]) is None
    assert sqlite_db.query_scalar("SELECT COUNT(*) FROM users", as_type=str) == "2"


def test_sqlite_errors_propagate(sqlite_db: Database) -> None:
    with pytest.raises(sqlite3.OperationalError):
        sqlite_db.execute("SELEKT 1")
