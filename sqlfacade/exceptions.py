from typing import Any, Optional

__all__ = (
    "ConfigurationNotFoundError",
    "DatabaseClosedError",
    "ImproperConfigurationError",
    "InvalidArgumentError",
    "MissingDependencyError",
    "ParameterConflictError",
    "ParameterError",
    "ProviderError",
    "SQLConversionError",
    "SQLFacadeError",
    "SQLFormatError",
    "UnresolvedReferenceError",
    "UnsupportedLiteralError",
)


class SQLFacadeError(Exception):
    """Base exception class from which all SQLFacade exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLFacadeError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class InvalidArgumentError(SQLFacadeError, ValueError):
    """A required argument was missing, empty or malformed.

    Raised before any connection is opened or command is executed.
    """

    argument: Optional[str]

    def __init__(self, message: str, argument: Optional[str] = None) -> None:
        detail_message = message
        if argument:
            detail_message = f"{message} (Parameter: {argument})"
        super().__init__(detail=detail_message)
        self.argument = argument


def argument_null_or_empty(argument: str) -> InvalidArgumentError:
    """Build the error raised for a null or empty string argument."""
    return InvalidArgumentError("Value cannot be null or an empty string.", argument)


class MissingDependencyError(SQLFacadeError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlfacade[{install_package or package}]' to install sqlfacade with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLFacadeError):
    """Improper Configuration error.

    Raised when the facade, a provider or a dialect is configured inconsistently.
    """


class ConfigurationNotFoundError(ImproperConfigurationError):
    """A named connection string, provider or dialect could not be resolved."""

    name: str

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name


class ProviderError(SQLFacadeError):
    """A provider factory failed to produce a connection."""


class DatabaseClosedError(SQLFacadeError):
    """Raised when a closed database facade is used again."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Cannot access a closed database."
        super().__init__(message)


class SQLFormatError(SQLFacadeError):
    """Base class for errors raised while formatting a SQL template."""


class UnsupportedLiteralError(SQLFormatError):
    """The dialect cannot render a value of this kind as an inline literal."""

    value_type: type

    def __init__(self, value_type: type) -> None:
        super().__init__(f"Unsupported literal type: {value_type.__module__}.{value_type.__qualname__}")
        self.value_type = value_type


class ParameterError(SQLFormatError):
    """Base class for parameter-related errors."""

    parameter_name: str

    def __init__(self, message: str, parameter_name: str) -> None:
        super().__init__(message)
        self.parameter_name = parameter_name


class ParameterConflictError(ParameterError):
    """The same named parameter was bound to two different values in one template."""

    def __init__(self, parameter_name: str) -> None:
        super().__init__(f'Conflicting values supplied for parameter "{parameter_name}".', parameter_name)


class UnresolvedReferenceError(ParameterError):
    """A reference names a parameter that was never bound earlier in the template."""

    def __init__(self, parameter_name: str) -> None:
        super().__init__(
            f'Reference to parameter "{parameter_name}" that has not been bound earlier in the template.',
            parameter_name,
        )


class SQLConversionError(SQLFacadeError):
    """A scalar result could not be converted to the requested type."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues converting scalar value."
        super().__init__(message)
