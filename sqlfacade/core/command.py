"""Commands, command options and the builder producing them."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlfacade.core.dialects import TSQL_DIALECT, DialectFormatter
from sqlfacade.core.formatter import TemplateFormatter
from sqlfacade.core.parameters import OrdinalNaming, Parameter, create_parameters
from sqlfacade.core.template import SQLTemplate
from sqlfacade.exceptions import InvalidArgumentError, argument_null_or_empty
from sqlfacade.observability import create_command_event, notify_observers
from sqlfacade.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlfacade.observability import CommandObserver
    from sqlfacade.typing import CommandText

__all__ = (
    "DEFAULT_COMMAND_OPTIONS",
    "DEFAULT_QUERY_OPTIONS",
    "UNBUFFERED_QUERY_OPTIONS",
    "Command",
    "CommandBuilder",
    "CommandOptions",
    "QueryOptions",
)

logger = get_logger("sqlfacade.core.command")


@dataclass(frozen=True)
class CommandOptions:
    """Options applying to any command.

    Attributes:
        timeout: Seconds before the command is abandoned; ``None`` uses the
            configured default.
    """

    timeout: "Optional[float]" = None

    def with_timeout(self, timeout: "Optional[float]") -> "CommandOptions":
        if timeout == self.timeout:
            return self
        return replace(self, timeout=timeout)


@dataclass(frozen=True)
class QueryOptions(CommandOptions):
    """Options for row-returning commands.

    Attributes:
        unbuffered: Stream rows lazily instead of materializing them all.
    """

    unbuffered: bool = False

    def with_timeout(self, timeout: "Optional[float]") -> "QueryOptions":
        if timeout == self.timeout:
            return self
        return replace(self, timeout=timeout)

    def with_unbuffered(self, unbuffered: bool = True) -> "QueryOptions":
        if unbuffered == self.unbuffered:
            return self
        return replace(self, unbuffered=unbuffered)


DEFAULT_COMMAND_OPTIONS: Final[CommandOptions] = CommandOptions()
DEFAULT_QUERY_OPTIONS: Final[QueryOptions] = QueryOptions()
UNBUFFERED_QUERY_OPTIONS: Final[QueryOptions] = QueryOptions(unbuffered=True)


@dataclass(frozen=True)
class Command:
    """A finished command, ready for an executor.

    Attributes:
        command_text: SQL text with parameter tokens already rendered.
        parameters: Bound parameters in binding order.
        timeout: Seconds allowed for execution, or ``None`` for no limit.
    """

    command_text: str
    parameters: "tuple[Parameter, ...]" = ()
    timeout: "Optional[float]" = None

    @property
    def parameter_names(self) -> "tuple[str, ...]":
        return tuple(parameter.name for parameter in self.parameters)

    def with_timeout(self, timeout: "Optional[float]") -> "Command":
        if timeout == self.timeout:
            return self
        return replace(self, timeout=timeout)


@mypyc_attr(allow_interpreted_subclasses=True)
class CommandBuilder:
    """Turns literal text plus arguments, or a template, into a :class:`Command`.

    Literal text is paired with positional arguments named by ordinal. Templates
    are handed to a :class:`~sqlfacade.core.formatter.TemplateFormatter`, which
    keeps its own ordinal counter. Both use the same naming strategy.

    Args:
        dialect: Dialect used to render templates.
        naming: Strategy naming anonymous parameters. Defaults to the dialect's.
        observers: Callables notified with a
            :class:`~sqlfacade.observability.CommandEvent` for every built command.
        default_timeout: Timeout applied when the options do not set one.
    """

    __slots__ = ("default_timeout", "dialect", "formatter", "naming", "observers")

    def __init__(
        self,
        dialect: "Optional[DialectFormatter]" = None,
        naming: "Optional[OrdinalNaming]" = None,
        observers: "Iterable[CommandObserver]" = (),
        default_timeout: "Optional[float]" = None,
    ) -> None:
        dialect = dialect or TSQL_DIALECT
        if naming is not None and naming != dialect.naming:
            dialect = dialect.replace(naming=naming)
        self.dialect = dialect
        self.naming = dialect.naming
        self.formatter = TemplateFormatter(dialect)
        self.observers: tuple[CommandObserver, ...] = tuple(observers)
        self.default_timeout = default_timeout

    def build(
        self,
        command_text: "CommandText",
        args: "Sequence[Any]" = (),
        options: "Optional[CommandOptions]" = None,
    ) -> Command:
        """Build a command and notify observers.

        Args:
            command_text: Literal SQL text or an :class:`~sqlfacade.core.template.SQLTemplate`.
            args: Positional arguments for literal text; bare values or parameter setters.
            options: Command options.

        Raises:
            InvalidArgumentError: If the text is empty or a template is given extra arguments.

        Returns:
            The command.
        """
        if isinstance(command_text, SQLTemplate):
            if args:
                msg = "Arguments cannot be supplied separately with a SQL template."
                raise InvalidArgumentError(msg, "args")
            text, parameters = self.formatter.format(command_text)
        elif not command_text:
            raise argument_null_or_empty("command_text")
        elif not isinstance(command_text, str):
            msg = f"Expected SQL text or an SQLTemplate, got {type(command_text).__name__}"
            raise InvalidArgumentError(msg, "command_text")
        else:
            text, parameters = command_text, create_parameters(args, self.naming)

        timeout = options.timeout if options is not None else None
        command = Command(text, parameters, self.default_timeout if timeout is None else timeout)
        logger.debug("Built command with %d parameter(s)", len(parameters))
        if self.observers:
            notify_observers(self.observers, create_command_event(command, self.dialect.name))
        return command
