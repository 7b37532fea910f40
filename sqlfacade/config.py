"""Facade configuration, provider registry and connection-string resolution.

Every :class:`~sqlfacade.base.Database` receives a :class:`FacadeConfig` at
construction. When none is passed, the process-wide configuration managed by
:func:`get_global_config` / :func:`set_global_config` is used; it starts out
as :func:`create_default_config` and :func:`reset_global_config` restores it.
"""

import os
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Final, Optional, Union

from sqlfacade.core.dialects import TSQL_DIALECT, DialectFormatter, get_dialect
from sqlfacade.exceptions import (
    ConfigurationNotFoundError,
    ImproperConfigurationError,
    InvalidArgumentError,
    MissingDependencyError,
)
from sqlfacade.utils.logging import get_logger
from sqlfacade.utils.module_loader import import_string

if TYPE_CHECKING:
    from sqlfacade.core.parameters import OrdinalNaming
    from sqlfacade.observability import CommandObserver, ConnectionObserver
    from sqlfacade.protocols import AsyncProviderFactory, ConnectionStringResolver, ProviderFactory
    from sqlfacade.typing import ConnectionDecorator

__all__ = (
    "ConfigManager",
    "ConnectionStringSettings",
    "EnvironmentConnectionStringResolver",
    "FacadeConfig",
    "MappingConnectionStringResolver",
    "create_default_config",
    "get_global_config",
    "get_provider",
    "list_providers",
    "load_config_from_env",
    "register_provider",
    "reset_global_config",
    "set_global_config",
)

logger = get_logger("sqlfacade.config")

ENV_PREFIX: Final = "SQLFACADE_"
CONNECTION_ENV_PREFIX: Final = f"{ENV_PREFIX}CONNECTION_"
PROVIDER_ENV_PREFIX: Final = f"{ENV_PREFIX}PROVIDER_"


@dataclass(frozen=True)
class ConnectionStringSettings:
    """A named connection string and the provider it is meant for.

    Attributes:
        name: The name it was registered under.
        connection_string: Provider-specific connection string.
        provider_name: Registered provider name; ``None`` means the configured default.
    """

    name: str
    connection_string: str
    provider_name: "Optional[str]" = None


def _environment_key(name: str) -> str:
    return re.sub(r"[^0-9A-Za-z]", "_", name).upper()


class EnvironmentConnectionStringResolver:
    """Resolves names from environment variables.

    ``SQLFACADE_CONNECTION_<NAME>`` holds the connection string and the
    optional ``SQLFACADE_PROVIDER_<NAME>`` the provider name. ``<NAME>`` is the
    upper-cased name with every non-alphanumeric character replaced by ``_``.
    """

    __slots__ = ("connection_prefix", "environ", "provider_prefix")

    def __init__(
        self,
        connection_prefix: str = CONNECTION_ENV_PREFIX,
        provider_prefix: str = PROVIDER_ENV_PREFIX,
        environ: "Optional[Mapping[str, str]]" = None,
    ) -> None:
        self.connection_prefix = connection_prefix
        self.provider_prefix = provider_prefix
        self.environ = environ

    def resolve(self, name: str) -> "Optional[ConnectionStringSettings]":
        environ = os.environ if self.environ is None else self.environ
        key = _environment_key(name)
        connection_string = environ.get(f"{self.connection_prefix}{key}")
        if not connection_string:
            return None
        return ConnectionStringSettings(name, connection_string, environ.get(f"{self.provider_prefix}{key}") or None)

    def __repr__(self) -> str:
        return f"EnvironmentConnectionStringResolver(connection_prefix={self.connection_prefix!r})"


class MappingConnectionStringResolver:
    """Resolves names from an explicit mapping; lookups ignore case.

    Values may be a connection string, a ``(connection_string, provider_name)``
    pair or a :class:`ConnectionStringSettings`.
    """

    __slots__ = ("_settings",)

    def __init__(
        self, connection_strings: "Mapping[str, Union[str, tuple[str, Optional[str]], ConnectionStringSettings]]"
    ) -> None:
        self._settings: dict[str, ConnectionStringSettings] = {}
        for name, entry in connection_strings.items():
            if isinstance(entry, ConnectionStringSettings):
                settings = entry
            elif isinstance(entry, str):
                settings = ConnectionStringSettings(name, entry)
            else:
                connection_string, provider_name = entry
                settings = ConnectionStringSettings(name, connection_string, provider_name)
            self._settings[name.casefold()] = settings

    def resolve(self, name: str) -> "Optional[ConnectionStringSettings]":
        return self._settings.get(name.casefold())

    def __repr__(self) -> str:
        return f"MappingConnectionStringResolver(names={sorted(self._settings)!r})"


_BUILTIN_PROVIDERS: Final = {
    "sqlite": ("sqlfacade.adapters.sqlite.SqliteProviderFactory", "sqlite3"),
    "aiosqlite": ("sqlfacade.adapters.aiosqlite.AiosqliteProviderFactory", "aiosqlite"),
}
_provider_lock = threading.Lock()
_PROVIDERS: "dict[str, Union[ProviderFactory, AsyncProviderFactory]]" = {}


def register_provider(
    factory: "Union[ProviderFactory, AsyncProviderFactory]", *, name: "Optional[str]" = None, overwrite: bool = False
) -> None:
    """Register a provider factory under ``name`` (defaults to ``factory.name``).

    Raises:
        ValueError: If the name is taken and ``overwrite`` is False.
    """
    key = (name or factory.name).lower()
    with _provider_lock:
        if key in _PROVIDERS and not overwrite:
            msg = f"Provider {key!r} is already registered"
            raise ValueError(msg)
        _PROVIDERS[key] = factory
    logger.debug("Registered provider %s", key)


def get_provider(provider_name: str) -> "Union[ProviderFactory, AsyncProviderFactory]":
    """Return the provider factory registered under ``provider_name``.

    Built-in providers are imported on first use.

    Raises:
        ConfigurationNotFoundError: If no provider has that name.
        MissingDependencyError: If a built-in provider's driver package is not installed.
    """
    key = provider_name.lower()
    with _provider_lock:
        factory = _PROVIDERS.get(key)
        if factory is not None:
            return factory
        builtin = _BUILTIN_PROVIDERS.get(key)
        if builtin is None:
            msg = f'Provider "{provider_name}" is not registered.'
            raise ConfigurationNotFoundError(msg, provider_name)
        dotted_path, package = builtin
        try:
            factory_type = import_string(dotted_path)
        except ImportError as e:
            raise MissingDependencyError(package) from e
        factory = factory_type()
        _PROVIDERS[key] = factory
        return factory


def list_providers() -> "list[str]":
    with _provider_lock:
        return sorted(set(_PROVIDERS) | set(_BUILTIN_PROVIDERS))


@dataclass(frozen=True)
class FacadeConfig:
    """Settings shared by the facades built with it.

    Attributes:
        dialect: Dialect for rendering commands. ``None`` uses the provider's
            dialect, or :data:`~sqlfacade.core.dialects.TSQL_DIALECT` without one.
        naming: Anonymous parameter naming; ``None`` keeps the dialect's.
        default_provider: Provider for synchronous facades when none is given.
        default_async_provider: Provider for asynchronous facades when none is given.
        connection_decorator: Wraps each new connection before use.
        connection_string_resolver: Resolves names passed to ``open()``.
        command_observers: Called with every built command.
        connection_observers: Called when a facade opens its connection.
        default_timeout: Command timeout in seconds when options set none.
    """

    dialect: "Optional[DialectFormatter]" = None
    naming: "Optional[OrdinalNaming]" = None
    default_provider: str = "sqlite"
    default_async_provider: str = "aiosqlite"
    connection_decorator: "Optional[ConnectionDecorator]" = None
    connection_string_resolver: "ConnectionStringResolver" = field(
        default_factory=EnvironmentConnectionStringResolver
    )
    command_observers: "tuple[CommandObserver, ...]" = ()
    connection_observers: "tuple[ConnectionObserver, ...]" = ()
    default_timeout: "Optional[float]" = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "command_observers", tuple(self.command_observers))
        object.__setattr__(self, "connection_observers", tuple(self.connection_observers))
        errors = self.validate()
        if errors:
            msg = f"Invalid configuration: {', '.join(errors)}"
            raise InvalidArgumentError(msg)

    def validate(self) -> "list[str]":
        """Return a list of consistency errors; empty when valid."""
        errors = []
        if self.default_timeout is not None and self.default_timeout < 0:
            errors.append("default_timeout must be non-negative")
        if not self.default_provider:
            errors.append("default_provider must not be empty")
        if not self.default_async_provider:
            errors.append("default_async_provider must not be empty")
        if self.connection_string_resolver is None:
            errors.append("connection_string_resolver is required")
        return errors

    def replace(self, **kwargs: Any) -> "FacadeConfig":
        """Return a copy with some settings changed."""
        return replace(self, **kwargs)

    def with_command_observer(self, observer: "CommandObserver") -> "FacadeConfig":
        return self.replace(command_observers=(*self.command_observers, observer))

    def with_connection_observer(self, observer: "ConnectionObserver") -> "FacadeConfig":
        return self.replace(connection_observers=(*self.connection_observers, observer))

    def resolve_dialect(
        self, provider: "Optional[Union[ProviderFactory, AsyncProviderFactory]]" = None
    ) -> DialectFormatter:
        """Pick the dialect for a facade using ``provider``."""
        if self.dialect is not None:
            return self.dialect
        if provider is not None:
            return provider.dialect
        return TSQL_DIALECT


class ConfigManager:
    """Thread-safe owner of the process-wide :class:`FacadeConfig`."""

    __slots__ = ("_config", "_lock")

    def __init__(self) -> None:
        self._config = create_default_config()
        self._lock = threading.RLock()

    def get_config(self) -> FacadeConfig:
        with self._lock:
            return self._config

    def set_config(self, config: FacadeConfig) -> None:
        """Replace the process-wide configuration.

        Raises:
            ImproperConfigurationError: If ``config`` is not a :class:`FacadeConfig`.
        """
        if not isinstance(config, FacadeConfig):
            msg = f"Expected FacadeConfig, got {type(config).__name__}"
            raise ImproperConfigurationError(msg)
        with self._lock:
            self._config = config
        logger.info("Global configuration updated")

    def update_config(self, **kwargs: Any) -> None:
        with self._lock:
            self.set_config(self._config.replace(**kwargs))

    def reload_from_env(self) -> None:
        """Reload the environment-driven settings, keeping everything else."""
        env_config = load_config_from_env()
        self.update_config(
            dialect=env_config.dialect,
            default_provider=env_config.default_provider,
            default_async_provider=env_config.default_async_provider,
            default_timeout=env_config.default_timeout,
        )

    def reset_to_defaults(self) -> None:
        self.set_config(create_default_config())


_config_manager: Optional[ConfigManager] = None
_config_lock = threading.Lock()


def _get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        with _config_lock:
            if _config_manager is None:
                _config_manager = ConfigManager()
    return _config_manager


def get_global_config() -> FacadeConfig:
    """Return the process-wide configuration."""
    return _get_config_manager().get_config()


def set_global_config(config: FacadeConfig) -> None:
    """Replace the process-wide configuration.

    Facades already constructed keep the configuration they were built with.
    """
    _get_config_manager().set_config(config)


def reset_global_config() -> None:
    """Restore the default process-wide configuration."""
    _get_config_manager().reset_to_defaults()


def create_default_config() -> FacadeConfig:
    return FacadeConfig()


def load_config_from_env() -> FacadeConfig:
    """Build a configuration from environment variables.

    Environment Variables Supported:
    - SQLFACADE_DEFAULT_PROVIDER: Provider for synchronous facades (default ``sqlite``)
    - SQLFACADE_DEFAULT_ASYNC_PROVIDER: Provider for asynchronous facades (default ``aiosqlite``)
    - SQLFACADE_DIALECT: Registered dialect name (default: the provider's)
    - SQLFACADE_COMMAND_TIMEOUT: Default command timeout in seconds

    Raises:
        ConfigurationNotFoundError: If SQLFACADE_DIALECT names an unknown dialect.

    Returns:
        The configuration; settings not driven by the environment keep their defaults.
    """
    dialect_name = os.getenv(f"{ENV_PREFIX}DIALECT")
    return FacadeConfig(
        dialect=get_dialect(dialect_name) if dialect_name else None,
        default_provider=os.getenv(f"{ENV_PREFIX}DEFAULT_PROVIDER") or "sqlite",
        default_async_provider=os.getenv(f"{ENV_PREFIX}DEFAULT_ASYNC_PROVIDER") or "aiosqlite",
        default_timeout=_env_float(f"{ENV_PREFIX}COMMAND_TIMEOUT", None),
    )


def _env_float(key: str, default: "Optional[float]") -> "Optional[float]":
    """Get float value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid float value for %s: %s, using default %s", key, value, default)
        return default
