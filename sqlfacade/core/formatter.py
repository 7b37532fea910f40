"""Template formatting.

Turns an :class:`~sqlfacade.core.template.SQLTemplate` into command text and
the ordered parameters it binds. Each call to :meth:`TemplateFormatter.format`
is one formatting pass: the name table and the anonymous counter live only
for that pass, so a formatter can be shared freely between threads.
"""

from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from mypy_extensions import mypyc_attr

from sqlfacade.core.dialects import TSQL_DIALECT, DialectFormatter
from sqlfacade.core.parameters import Parameter, ParameterSetter, create_parameter
from sqlfacade.core.template import SQLList, SQLLiteral, SQLNamed, SQLRef, SQLTemplate
from sqlfacade.exceptions import InvalidArgumentError, ParameterConflictError, UnresolvedReferenceError
from sqlfacade.typing import DBNull

if TYPE_CHECKING:
    from sqlfacade.typing import ParameterSink

__all__ = ("FormattedCommand", "TemplateFormatter", "format_template")


class FormattedCommand(NamedTuple):
    """Finished command text and the parameters it references, in binding order."""

    command_text: str
    parameters: "tuple[Parameter, ...]"


def _comparable(slot_value: Any) -> Any:
    return DBNull if slot_value is None else slot_value


def _values_equal(bound: Any, candidate: Any) -> bool:
    if bound is candidate:
        return True
    return type(bound) is type(candidate) and bool(bound == candidate)


class _FormattingPass:
    """State of a single walk over a template tree."""

    __slots__ = ("_bindings", "_ordinal", "dialect", "parameters", "sink")

    def __init__(self, dialect: DialectFormatter, sink: "ParameterSink") -> None:
        self.dialect = dialect
        self.sink = sink
        self.parameters: list[Parameter] = []
        self._bindings: dict[str, tuple[Parameter, Any]] = {}
        self._ordinal = 0

    def render(self, template: SQLTemplate) -> str:
        positional = [self._render_slot(argument) for argument in template.arguments]
        keywords = {key: self._render_slot(argument) for key, argument in template.keyword_arguments.items()}
        try:
            return template.format_string.format(*positional, **keywords)
        except (IndexError, KeyError, ValueError) as e:
            msg = f"Invalid SQL template {template.format_string!r}: {e}"
            raise InvalidArgumentError(msg, "format_string") from e

    def _render_slot(self, slot: Any) -> str:
        if isinstance(slot, SQLLiteral):
            return self.dialect.render_literal(slot.value)
        if isinstance(slot, SQLNamed):
            return self._bind_named(slot.name, slot.value)
        if isinstance(slot, SQLRef):
            return self._resolve(slot.name)
        if isinstance(slot, SQLTemplate):
            return self.render(slot)
        if isinstance(slot, SQLList):
            return self._render_list(slot)
        return self._bind_value(slot)

    def _render_list(self, slot: SQLList) -> str:
        if not slot.values:
            return ""
        if slot.naming is None:
            tokens = [self._bind_value(item) for item in slot.values]
        else:
            tokens = [self._bind_named(slot.naming.format(index), item) for index, item in enumerate(slot.values)]
        return f"{slot.before or ''}{slot.separator.join(tokens)}{slot.after or ''}"

    def _bind_named(self, parameter_name: str, slot_value: Any) -> str:
        bound = self._bindings.get(self.dialect.normalize_name(parameter_name))
        if bound is not None:
            return self._reuse(bound, parameter_name, _comparable(slot_value))
        parameter = self.sink(slot_value)
        parameter.name = parameter_name
        return self._register(parameter, _comparable(slot_value))

    def _bind_value(self, slot_value: Any) -> str:
        parameter = self.sink(slot_value)
        if parameter.name:
            comparable = slot_value if isinstance(slot_value, ParameterSetter) else parameter.value
            bound = self._bindings.get(self.dialect.normalize_name(parameter.name))
            if bound is not None:
                return self._reuse(bound, parameter.name, comparable)
            return self._register(parameter, comparable)
        parameter.name = self._next_anonymous_name()
        return self._register(parameter, parameter.value)

    def _next_anonymous_name(self) -> str:
        while True:
            candidate = self.dialect.anonymous_name(self._ordinal)
            self._ordinal += 1
            if self.dialect.normalize_name(candidate) not in self._bindings:
                return candidate

    def _reuse(self, bound: "tuple[Parameter, Any]", parameter_name: str, comparable: Any) -> str:
        parameter, bound_value = bound
        if not _values_equal(bound_value, comparable):
            raise ParameterConflictError(parameter_name)
        return self.dialect.render_named_token(parameter.name)

    def _register(self, parameter: Parameter, comparable: Any) -> str:
        self._bindings[self.dialect.normalize_name(parameter.name)] = (parameter, comparable)
        self.parameters.append(parameter)
        return self.dialect.render_named_token(parameter.name)

    def _resolve(self, parameter_name: str) -> str:
        bound = self._bindings.get(self.dialect.normalize_name(parameter_name))
        if bound is None:
            raise UnresolvedReferenceError(parameter_name)
        return self.dialect.render_named_token(bound[0].name)


@mypyc_attr(allow_interpreted_subclasses=False)
class TemplateFormatter:
    """Renders templates for one dialect.

    Slots are processed depth first, left to right, positional arguments
    before keyword arguments. Parameters come out in the order they were
    first bound.

    Args:
        dialect: Dialect used for tokens, literals and name comparison.
    """

    __slots__ = ("dialect",)

    def __init__(self, dialect: "Optional[DialectFormatter]" = None) -> None:
        self.dialect = dialect or TSQL_DIALECT

    def format(self, template: SQLTemplate, parameter_sink: "Optional[ParameterSink]" = None) -> FormattedCommand:
        """Run one formatting pass over ``template``.

        Args:
            template: The template to render.
            parameter_sink: Creates the parameter for a bound value. Defaults to
                :func:`~sqlfacade.core.parameters.create_parameter`.

        Raises:
            InvalidArgumentError: If ``template`` is not a template or its format string is malformed.
            ParameterConflictError: If a name is bound to two different values.
            UnresolvedReferenceError: If a reference names a parameter not yet bound.
            UnsupportedLiteralError: If a literal cannot be rendered by the dialect.

        Returns:
            The command text and its parameters.
        """
        if not isinstance(template, SQLTemplate):
            msg = f"Expected an SQLTemplate, got {type(template).__name__}"
            raise InvalidArgumentError(msg, "template")
        formatting_pass = _FormattingPass(self.dialect, parameter_sink or create_parameter)
        command_text = formatting_pass.render(template)
        return FormattedCommand(command_text, tuple(formatting_pass.parameters))

    def __repr__(self) -> str:
        return f"TemplateFormatter(dialect={self.dialect!r})"


def format_template(
    template: SQLTemplate,
    dialect: "Optional[DialectFormatter]" = None,
    parameter_sink: "Optional[ParameterSink]" = None,
) -> FormattedCommand:
    """Format ``template`` with a one-off :class:`TemplateFormatter`."""
    return TemplateFormatter(dialect).format(template, parameter_sink)
