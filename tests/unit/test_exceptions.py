from sqlfacade.exceptions import (
    ConfigurationNotFoundError,
    DatabaseClosedError,
    ImproperConfigurationError,
    InvalidArgumentError,
    MissingDependencyError,
    ParameterConflictError,
    ParameterError,
    ProviderError,
    SQLConversionError,
    SQLFacadeError,
    SQLFormatError,
    UnresolvedReferenceError,
    UnsupportedLiteralError,
    argument_null_or_empty,
)


def test_exception_hierarchy() -> None:
    """Test exception classes inherit correctly."""
    assert issubclass(ParameterConflictError, ParameterError)
    assert issubclass(UnresolvedReferenceError, ParameterError)
    assert issubclass(ParameterError, SQLFormatError)
    assert issubclass(UnsupportedLiteralError, SQLFormatError)
    assert issubclass(ConfigurationNotFoundError, ImproperConfigurationError)

    for error_type in (InvalidArgumentError, ProviderError, DatabaseClosedError, SQLConversionError, SQLFormatError):
        assert issubclass(error_type, SQLFacadeError)


def test_invalid_argument_error_is_a_value_error() -> None:
    error = InvalidArgumentError("Bad value.", "command_text")

    assert isinstance(error, ValueError)
    assert error.argument == "command_text"
    assert str(error) == "Bad value. (Parameter: command_text)"


def test_argument_null_or_empty() -> None:
    error = argument_null_or_empty("name")

    assert str(error) == "Value cannot be null or an empty string. (Parameter: name)"
    assert error.argument == "name"


def test_default_messages() -> None:
    assert str(DatabaseClosedError()) == "Cannot access a closed database."
    assert str(SQLConversionError()) == "Issues converting scalar value."


def test_parameter_errors_carry_the_name() -> None:
    conflict = ParameterConflictError("id")
    unresolved = UnresolvedReferenceError("ref")

    assert conflict.parameter_name == "id"
    assert str(conflict) == 'Conflicting values supplied for parameter "id".'
    assert unresolved.parameter_name == "ref"
    assert '"ref"' in str(unresolved)


def test_unsupported_literal_names_the_type() -> None:
    error = UnsupportedLiteralError(float)

    assert error.value_type is float
    assert str(error) == "Unsupported literal type: builtins.float"


def test_configuration_not_found_keeps_name() -> None:
    error = ConfigurationNotFoundError('Connection string "main" was not found.', "main")

    assert error.name == "main"
    assert str(error) == 'Connection string "main" was not found.'


def test_missing_dependency_error() -> None:
    error = MissingDependencyError("aiosqlite")

    assert isinstance(error, ImportError)
    assert "pip install aiosqlite" in str(error)


def test_repr_and_chaining() -> None:
    try:
        try:
            raise ValueError("original")
        except ValueError as e:
            raise ProviderError("provider failed") from e
    except ProviderError as exc:
        assert isinstance(exc.__cause__, ValueError)
        assert repr(exc) == "ProviderError - provider failed"
