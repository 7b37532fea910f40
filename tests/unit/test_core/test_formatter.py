"""Unit tests for template formatting."""

from typing import Any

import pytest

from sqlfacade.core.dialects import COLON_DIALECT, SQLITE_DIALECT, TSQL_DIALECT
from sqlfacade.core.formatter import FormattedCommand, TemplateFormatter, format_template
from sqlfacade.core.parameters import DbType, Parameter, create_parameter, param
from sqlfacade.core.template import SQLList, SQLLiteral, SQLNamed, SQLRef, SQLTemplate
from sqlfacade.exceptions import (
    InvalidArgumentError,
    ParameterConflictError,
    UnresolvedReferenceError,
    UnsupportedLiteralError,
)
from sqlfacade.typing import DBNull


def _names(result: FormattedCommand) -> "list[str]":
    return [parameter.name for parameter in result.parameters]


def _values(result: FormattedCommand) -> "list[Any]":
    return [parameter.value for parameter in result.parameters]


def test_named_slot_renders_its_name() -> None:
    result = format_template(SQLTemplate("SELECT * FROM users WHERE Id={0}", SQLNamed("id", 5)))

    assert result.command_text == "SELECT * FROM users WHERE Id=@id"
    assert result.parameters == (Parameter("id", 5),)


def test_list_expands_to_bracketed_anonymous_parameters() -> None:
    result = format_template(SQLTemplate("SELECT * FROM t WHERE x IN {0}", SQLList([1, 2, 3], ",", "(", ")")))

    assert result.command_text == "SELECT * FROM t WHERE x IN (@0,@1,@2)"
    assert _names(result) == ["0", "1", "2"]
    assert _values(result) == [1, 2, 3]


def test_literal_string_is_quoted_and_not_bound() -> None:
    result = format_template(SQLTemplate("SELECT * FROM t WHERE name = {0}", SQLLiteral("O'Brien")))

    assert result.command_text == "SELECT * FROM t WHERE name = 'O''Brien'"
    assert result.parameters == ()


@pytest.mark.parametrize(
    ("literal", "expected"), [(None, "NULL"), (42, "42"), (-7, "-7"), ("", "''"), ("it's", "'it''s'")]
)
def test_supported_literals(literal: Any, expected: str) -> None:
    assert format_template(SQLTemplate("{0}", SQLLiteral(literal))).command_text == expected


@pytest.mark.parametrize("literal", [True, 1.5, b"raw", [1]])
def test_unsupported_literal_raises(literal: Any) -> None:
    with pytest.raises(UnsupportedLiteralError) as exc_info:
        format_template(SQLTemplate("{0}", SQLLiteral(literal)))

    assert exc_info.value.value_type is type(literal)


def test_bare_values_get_ordinal_names() -> None:
    result = format_template(SQLTemplate("INSERT INTO t VALUES ({0}, {1})", "a", None))

    assert result.command_text == "INSERT INTO t VALUES (@0, @1)"
    assert _values(result) == ["a", DBNull]


def test_anonymous_counter_ignores_named_parameters() -> None:
    result = format_template(SQLTemplate("{0},{1},{2}", 1, SQLNamed("n", 2), 3))

    assert result.command_text == "@0,@n,@1"
    assert _names(result) == ["0", "n", "1"]


def test_anonymous_name_skips_names_already_bound() -> None:
    result = format_template(SQLTemplate("{0},{1}", SQLNamed("0", "x"), 5))

    assert result.command_text == "@0,@1"
    assert _names(result) == ["0", "1"]
    assert _values(result) == ["x", 5]


def test_repeated_named_slot_with_equal_value_binds_once() -> None:
    result = format_template(SQLTemplate("a={0} OR b={1}", SQLNamed("v", 10), SQLNamed("v", 10)))

    assert result.command_text == "a=@v OR b=@v"
    assert len(result.parameters) == 1


def test_named_lookup_follows_dialect_case_rules() -> None:
    template = SQLTemplate("{0} {1}", SQLNamed("a", 1), SQLNamed("A", 1))

    insensitive = format_template(template, TSQL_DIALECT)
    sensitive = format_template(template, SQLITE_DIALECT)

    assert insensitive.command_text == "@a @a"
    assert _names(insensitive) == ["a"]
    assert sensitive.command_text == "@a @A"
    assert _names(sensitive) == ["a", "A"]


def test_conflicting_named_values_raise() -> None:
    with pytest.raises(ParameterConflictError) as exc_info:
        format_template(SQLTemplate("{0} {1}", SQLNamed("a", 1), SQLNamed("a", 2)))

    assert exc_info.value.parameter_name == "a"


@pytest.mark.parametrize(("first", "second"), [(1, True), (1, 1.0), (0, False), ("1", 1)])
def test_equal_values_of_different_types_conflict(first: Any, second: Any) -> None:
    with pytest.raises(ParameterConflictError):
        format_template(SQLTemplate("{0} {1}", SQLNamed("v", first), SQLNamed("v", second)))


def test_equal_values_of_the_same_type_share_a_parameter() -> None:
    result = format_template(SQLTemplate("{0} {1}", SQLNamed("v", 1.5), SQLNamed("v", 1.5)))

    assert result.command_text == "@v @v"
    assert len(result.parameters) == 1


def test_named_none_values_do_not_conflict() -> None:
    result = format_template(SQLTemplate("{0} {1}", SQLNamed("n", None), SQLNamed("n", None)))

    assert result.command_text == "@n @n"
    assert result.parameters[0].value is DBNull


def test_reference_renders_bound_name() -> None:
    result = format_template(SQLTemplate("x={0} OR y={1}", SQLNamed("Id", 3), SQLRef("id")))

    assert result.command_text == "x=@Id OR y=@Id"
    assert len(result.parameters) == 1


def test_unresolved_reference_raises() -> None:
    with pytest.raises(UnresolvedReferenceError) as exc_info:
        format_template(SQLTemplate("{0} {1}", SQLRef("later"), SQLNamed("later", 1)))

    assert exc_info.value.parameter_name == "later"


def test_nested_template_shares_the_pass() -> None:
    inner = SQLTemplate("b = {0} AND c = {1}", 20, SQLRef("a"))
    result = format_template(SQLTemplate("a = {0} AND {1} AND d = {2}", SQLNamed("a", 10), inner, 30))

    assert result.command_text == "a = @a AND b = @0 AND c = @a AND d = @1"
    assert _names(result) == ["a", "0", "1"]
    assert _values(result) == [10, 20, 30]


def test_name_bound_in_nested_template_resolves_in_outer() -> None:
    inner = SQLTemplate("b = {0}", SQLNamed("b", 20))
    result = format_template(SQLTemplate("{0} OR c = {1} OR d = {2}", inner, SQLRef("B"), 30))

    assert result.command_text == "b = @b OR c = @b OR d = @0"
    assert _names(result) == ["b", "0"]
    assert _values(result) == [20, 30]


def test_parameter_order_follows_first_occurrence() -> None:
    result = format_template(
        SQLTemplate("{0} {1} {2}", SQLList(["x", "y"]), SQLTemplate("{0}", "z"), SQLNamed("n", "w"))
    )

    assert _values(result) == ["x", "y", "z", "w"]


def test_empty_list_renders_nothing() -> None:
    result = format_template(SQLTemplate("x{0}y", SQLList([], before="(", after=")")))

    assert result.command_text == "xy"
    assert result.parameters == ()


def test_list_with_naming_pattern() -> None:
    result = format_template(SQLTemplate("IN {0}", SQLList([7, 8], ", ", "(", ")", naming="id{0}")))

    assert result.command_text == "IN (@id0, @id1)"
    assert _names(result) == ["id0", "id1"]


def test_keyword_slots_render_after_positional() -> None:
    result = format_template(SQLTemplate("{tenant} {0}", 1, tenant=2))

    assert result.command_text == "@1 @0"
    assert _values(result) == [1, 2]


def test_escaped_braces_survive() -> None:
    result = format_template(SQLTemplate("SELECT '{{x}}', {0}", 1))

    assert result.command_text == "SELECT '{x}', @0"


def test_setter_in_bare_slot_registers_its_name() -> None:
    setter = param("abc", name="code", db_type=DbType.ANSI_STRING, size=3)
    result = format_template(SQLTemplate("{0} {1} {2}", setter, SQLRef("code"), "other"))

    assert result.command_text == "@code @code @0"
    assert result.parameters[0] == Parameter("code", "abc", DbType.ANSI_STRING, size=3)


def test_setter_name_conflicting_with_named_slot_raises() -> None:
    with pytest.raises(ParameterConflictError):
        format_template(SQLTemplate("{0} {1}", SQLNamed("code", "abc"), param("xyz", name="code")))


def test_colon_dialect_prefixes_anonymous_names() -> None:
    result = format_template(SQLTemplate("{0} {1}", 1, SQLNamed("n", 2)), COLON_DIALECT)

    assert result.command_text == ":p0 :n"


def test_custom_sink_creates_parameters() -> None:
    seen: list[Any] = []

    def sink(slot_value: Any) -> Parameter:
        seen.append(slot_value)
        parameter = create_parameter(slot_value)
        parameter.size = 10
        return parameter

    result = TemplateFormatter().format(SQLTemplate("{0} {1}", "a", SQLNamed("b", "c")), sink)

    assert seen == ["a", "c"]
    assert all(parameter.size == 10 for parameter in result.parameters)


def test_formatter_passes_are_independent() -> None:
    formatter = TemplateFormatter()
    template = SQLTemplate("{0}", SQLNamed("a", 1))

    first = formatter.format(template)
    second = formatter.format(SQLTemplate("{0}", SQLNamed("a", 2)))

    assert first.parameters[0].value == 1
    assert second.parameters[0].value == 2


def test_formatting_the_same_template_twice_builds_fresh_parameters() -> None:
    formatter = TemplateFormatter()
    template = SQLTemplate("{0} {1} {2}", 1, SQLNamed("a", 2), SQLList([3, 4]))

    first = formatter.format(template)
    second = formatter.format(template)

    assert first == second
    assert first.command_text == "@0 @a @1,@2"
    for before, after in zip(first.parameters, second.parameters):
        assert before is not after


def test_template_without_placeholders_is_unchanged() -> None:
    result = format_template(SQLTemplate("SELECT COUNT(*) FROM users"))

    assert result.command_text == "SELECT COUNT(*) FROM users"
    assert result.parameters == ()


def test_malformed_format_string_raises() -> None:
    with pytest.raises(InvalidArgumentError):
        format_template(SQLTemplate("{1}", 1))


def test_non_template_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        TemplateFormatter().format("SELECT 1")  # type: ignore[arg-type]


def test_named_slot_requires_a_name() -> None:
    with pytest.raises(InvalidArgumentError):
        SQLNamed("", 1)
