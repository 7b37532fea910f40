"""Executor protocols and base classes for database adapters."""

from typing import Union

from sqlfacade.driver._async import AsyncDriverAdapterBase
from sqlfacade.driver._common import (
    AsyncResultCursor,
    CommonDriverAttributesMixin,
    ResultCursor,
    prepare_driver_parameters,
)
from sqlfacade.driver._sync import SyncDriverAdapterBase
from sqlfacade.protocols import (
    AsyncCommandExecutor,
    AsyncCursor,
    AsyncProviderFactory,
    Cursor,
    ProviderFactory,
    SyncCommandExecutor,
)

__all__ = (
    "AsyncCommandExecutor",
    "AsyncCursor",
    "AsyncDriverAdapterBase",
    "AsyncProviderFactory",
    "AsyncResultCursor",
    "CommonDriverAttributesMixin",
    "Cursor",
    "DriverAdapterProtocol",
    "ProviderFactory",
    "ResultCursor",
    "SyncCommandExecutor",
    "SyncDriverAdapterBase",
    "prepare_driver_parameters",
)

DriverAdapterProtocol = Union[SyncDriverAdapterBase, AsyncDriverAdapterBase]
