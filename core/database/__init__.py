"""Модуль базы данных."""

from .session import (
    db_manager,
    get_async_session,
    init_database,
    close_database,
    DatabaseManager
)

__all__ = [
    "db_manager",
    "get_async_session",
    "init_database",
    "close_database",
    "DatabaseManager"
]
