"""Aiosqlite adapter for SQLFacade."""

from sqlfacade.adapters.aiosqlite.config import AiosqliteProviderFactory
from sqlfacade.adapters.aiosqlite.driver import AiosqliteCursor, AiosqliteDriver

__all__ = ("AiosqliteCursor", "AiosqliteDriver", "AiosqliteProviderFactory")
