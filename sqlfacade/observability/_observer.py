"""Observer primitives for command and connection events."""

from collections.abc import Callable
from dataclasses import dataclass
from time import time
from typing import TYPE_CHECKING, Any, Optional

from sqlfacade.utils.logging import get_correlation_id, get_logger

if TYPE_CHECKING:
    from sqlfacade.core.command import Command

__all__ = (
    "CommandEvent",
    "CommandObserver",
    "ConnectionEvent",
    "ConnectionObserver",
    "create_command_event",
    "create_connection_event",
    "format_command_event",
    "log_command_event",
    "log_connection_event",
    "notify_observers",
)


logger = get_logger("sqlfacade.observability")


@dataclass(slots=True)
class CommandEvent:
    """Structured payload describing a command that is about to run."""

    command: "Command"
    dialect: str
    created_at: float
    correlation_id: "Optional[str]"

    @property
    def command_text(self) -> str:
        return self.command.command_text

    def as_dict(self) -> "dict[str, Any]":
        """Return event payload as a dictionary."""

        return {
            "command_text": self.command.command_text,
            "parameters": {parameter.name: parameter.driver_value for parameter in self.command.parameters},
            "timeout": self.command.timeout,
            "dialect": self.dialect,
            "created_at": self.created_at,
            "correlation_id": self.correlation_id,
        }


@dataclass(slots=True)
class ConnectionEvent:
    """Payload raised once when a facade opens its connection."""

    connection: Any
    provider: str
    opened_at: float
    correlation_id: "Optional[str]"

    def as_dict(self) -> "dict[str, Any]":
        return {
            "connection": repr(self.connection),
            "provider": self.provider,
            "opened_at": self.opened_at,
            "correlation_id": self.correlation_id,
        }


CommandObserver = Callable[[CommandEvent], None]
ConnectionObserver = Callable[[ConnectionEvent], None]


def create_command_event(command: "Command", dialect: str) -> CommandEvent:
    return CommandEvent(command=command, dialect=dialect, created_at=time(), correlation_id=get_correlation_id())


def create_connection_event(connection: Any, provider: str) -> ConnectionEvent:
    return ConnectionEvent(
        connection=connection, provider=provider, opened_at=time(), correlation_id=get_correlation_id()
    )


def notify_observers(observers: "tuple[Callable[[Any], None], ...]", event: Any) -> None:
    """Deliver ``event`` to each observer in order.

    Observer exceptions are not caught; the first failure aborts delivery and
    propagates to the caller.
    """
    for observer in observers:
        observer(event)


def format_command_event(event: CommandEvent) -> str:
    """Create a concise human-readable representation of a command event."""

    names = ", ".join(parameter.name for parameter in event.command.parameters) or "-"
    timeout_label = "default" if event.command.timeout is None else f"{event.command.timeout}s"
    return f"[{event.dialect}] timeout={timeout_label}\nSQL: {event.command_text}\nParameters: {names}"


def log_command_event(event: CommandEvent) -> None:
    """Log a created command at DEBUG level."""

    logger.debug(
        format_command_event(event),
        extra={
            "correlation_id": event.correlation_id,
            "extra_fields": {
                "dialect": event.dialect,
                "timeout": event.command.timeout,
                "parameter_names": [parameter.name for parameter in event.command.parameters],
            },
        },
    )


def log_connection_event(event: ConnectionEvent) -> None:
    """Log an opened connection at INFO level."""

    logger.info(
        "Connection opened using provider %s",
        event.provider,
        extra={"correlation_id": event.correlation_id, "extra_fields": {"provider": event.provider}},
    )
