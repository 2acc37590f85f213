"""SQLite database layer: connection management and repository implementation."""

from shared.db.connection import Database
from shared.db.player_repository import SqlitePlayerRepository

__all__ = [
    "Database",
    "SqlitePlayerRepository",
]
