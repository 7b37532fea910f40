"""Public observability exports."""

from sqlfacade.observability._observer import (
    CommandEvent,
    CommandObserver,
    ConnectionEvent,
    ConnectionObserver,
    create_command_event,
    create_connection_event,
    format_command_event,
    log_command_event,
    log_connection_event,
    notify_observers,
)

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
