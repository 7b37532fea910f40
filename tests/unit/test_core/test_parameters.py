"""Unit tests for parameters and parameter setters."""

from decimal import Decimal

import pytest

from sqlfacade.core.parameters import (
    DEFAULT_NAMING,
    DbType,
    OrdinalNaming,
    Parameter,
    ParameterSetter,
    ansi_string,
    create_parameter,
    create_parameters,
    db_type,
    name,
    param,
    precision,
    scale,
    size,
    value,
)
from sqlfacade.exceptions import InvalidArgumentError
from sqlfacade.typing import DBNull


def test_parameter_defaults() -> None:
    parameter = Parameter()

    assert parameter.name == ""
    assert parameter.value is DBNull
    assert parameter.driver_value is None
    assert (parameter.db_type, parameter.size, parameter.precision, parameter.scale) == (None, None, None, None)


def test_parameter_is_unhashable() -> None:
    with pytest.raises(TypeError):
        hash(Parameter("a", 1))


def test_parameter_repr_lists_only_set_hints() -> None:
    assert repr(Parameter("a", 1)) == "Parameter(name='a', value=1)"
    assert repr(Parameter("a", 1, size=4)) == "Parameter(name='a', value=1, size=4)"


def test_create_parameter_from_bare_value() -> None:
    parameter = create_parameter(5)

    assert parameter.name == ""
    assert parameter.value == 5


def test_create_parameter_maps_none_to_db_null() -> None:
    assert create_parameter(None).value is DBNull


def test_create_parameter_applies_setter() -> None:
    parameter = create_parameter(name("id") + value(3))

    assert parameter == Parameter("id", 3)


def test_each_setter_touches_one_field() -> None:
    parameter = (db_type(DbType.DECIMAL) + size(8) + precision(10) + scale(2))(Parameter("d", Decimal("1.5")))

    assert parameter == Parameter("d", Decimal("1.5"), DbType.DECIMAL, 8, 10, 2)


def test_later_setter_wins() -> None:
    parameter = (value(1) + name("first") + value(2) + name("second"))(Parameter())

    assert parameter.name == "second"
    assert parameter.value == 2


def test_empty_name_is_a_no_op() -> None:
    assert len(name("")) == 0
    assert len(name(None)) == 0
    assert (name("keep") + name(""))(Parameter()).name == "keep"


def test_value_setter_maps_none_to_db_null() -> None:
    assert value(None)(Parameter(value=1)).value is DBNull


def test_db_type_accepts_enum_values() -> None:
    assert db_type("int32")(Parameter()).db_type is DbType.INT32  # type: ignore[arg-type]


def test_setter_composition_with_none() -> None:
    setter = value(1)

    assert setter + None is setter
    assert None + setter is setter
    assert isinstance(setter + value(2), ParameterSetter)


def test_param_builds_all_hints() -> None:
    parameter = create_parameter(param(3, name="x", db_type=DbType.INT16, size=2, precision=5, scale=0))

    assert parameter == Parameter("x", 3, DbType.INT16, 2, 5, 0)


def test_param_without_name_stays_anonymous() -> None:
    assert create_parameter(param("v")).name == ""


def test_ansi_string() -> None:
    parameter = create_parameter(ansi_string("abc", name="code", size=10))

    assert parameter == Parameter("code", "abc", DbType.ANSI_STRING, size=10)


def test_create_parameters_names_by_position() -> None:
    parameters = create_parameters([1, None, name("x") + value(3), "d"])

    assert [parameter.name for parameter in parameters] == ["0", "1", "x", "3"]
    assert [parameter.value for parameter in parameters] == [1, DBNull, 3, "d"]


def test_create_parameters_rejects_duplicate_names() -> None:
    with pytest.raises(InvalidArgumentError, match='"1"'):
        create_parameters([name("1") + value("a"), "b"])
    with pytest.raises(InvalidArgumentError, match='"x"'):
        create_parameters([name("x") + value(1), name("x") + value(2)])


def test_create_parameters_with_prefixed_naming() -> None:
    parameters = create_parameters(["a", "b"], OrdinalNaming("p"))

    assert [parameter.name for parameter in parameters] == ["p0", "p1"]


def test_ordinal_naming() -> None:
    assert DEFAULT_NAMING(12) == "12"
    assert OrdinalNaming("arg")(0) == "arg0"
    assert OrdinalNaming("p") == OrdinalNaming("p")
    assert hash(OrdinalNaming("p")) == hash(OrdinalNaming("p"))
    assert OrdinalNaming("p") != OrdinalNaming("q")
