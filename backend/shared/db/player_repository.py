"""SQLite-backed player repository."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from shared.dal.models import PlayerRecord
from shared.dal.player_repository import (
    DuplicateHandleError,
    PlayerRepository,
    RecordStoreError,
    check_changes,
    check_sort_key,
)
from shared.db.connection import PLAYER_COLUMNS, record_to_row, row_to_record

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from shared.db.connection import Database

logger = structlog.get_logger()

_SELECT_SQL = f"SELECT {', '.join(PLAYER_COLUMNS)} FROM players"  # noqa: S608
_INSERT_SQL = (
    f"INSERT INTO players ({', '.join(PLAYER_COLUMNS)}) "  # noqa: S608
    f"VALUES ({', '.join('?' for _ in PLAYER_COLUMNS)})"
)
# Same rule as shared.stats.apply_outcome: loss costs a point, floored at zero.
_WIN_SQL = "UPDATE players SET score = score + 1, wins = wins + 1 WHERE id = ?"
_LOSS_SQL = "UPDATE players SET score = MAX(score - 1, 0), losses = losses + 1 WHERE id = ?"


def _to_column_value(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SqlitePlayerRepository(PlayerRepository):
    """SQLite implementation of PlayerRepository.

    Uses single statements under an asyncio lock to avoid race windows
    between existence checks and writes. Relies on the unique handle index
    and maps IntegrityError to DuplicateHandleError. Insertion order is
    the table rowid.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_player(self, handle: str, password_hash: str, email: str | None = None) -> PlayerRecord:
        """Insert a player. Raises DuplicateHandleError when the handle is taken."""
        record = PlayerRecord(
            player_id=uuid4().hex,
            handle=handle,
            password_hash=password_hash,
            email=email,
            created_at=datetime.now(tz=UTC),
        )
        async with self._lock:
            conn = self._db.connection
            try:
                conn.execute(_INSERT_SQL, record_to_row(record))
                conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                error_msg = str(exc).lower()
                if "players.handle" in error_msg or "idx_players_handle" in error_msg:
                    raise DuplicateHandleError(handle) from exc
                raise RecordStoreError(f"Failed to insert player: {exc}") from exc
            except (sqlite3.Error, OverflowError) as exc:
                conn.rollback()
                raise RecordStoreError(f"Failed to insert player: {exc}") from exc
        return record

    async def get_by_handle(self, handle: str) -> PlayerRecord | None:
        """Look up a player by handle (case-sensitive)."""
        return self._fetch_one(f"{_SELECT_SQL} WHERE handle = ?", (handle,))

    async def get_by_id(self, player_id: str) -> PlayerRecord | None:
        return self._fetch_one(f"{_SELECT_SQL} WHERE id = ?", (player_id,))

    async def update_player(self, player_id: str, changes: Mapping[str, Any]) -> PlayerRecord | None:
        """Update the given columns. Returns None when no row has this id."""
        check_changes(changes)
        async with self._lock:
            conn = self._db.connection
            try:
                if changes:
                    assignments = ", ".join(f"{column} = ?" for column in changes)
                    params = [_to_column_value(value) for value in changes.values()]
                    cursor = conn.execute(
                        f"UPDATE players SET {assignments} WHERE id = ?",  # noqa: S608
                        (*params, player_id),
                    )
                    conn.commit()
                    if cursor.rowcount == 0:
                        return None
            except (sqlite3.Error, OverflowError) as exc:
                conn.rollback()
                raise RecordStoreError(f"Failed to update player: {exc}") from exc
            return self._fetch_one(f"{_SELECT_SQL} WHERE id = ?", (player_id,))

    async def apply_outcome(self, player_id: str, *, won: bool) -> PlayerRecord | None:
        """Increment totals in one UPDATE so concurrent outcomes never overwrite each other."""
        async with self._lock:
            conn = self._db.connection
            try:
                cursor = conn.execute(_WIN_SQL if won else _LOSS_SQL, (player_id,))
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise RecordStoreError(f"Failed to record outcome: {exc}") from exc
            if cursor.rowcount == 0:
                return None
            return self._fetch_one(f"{_SELECT_SQL} WHERE id = ?", (player_id,))

    async def delete_player(self, player_id: str) -> bool:
        async with self._lock:
            conn = self._db.connection
            try:
                cursor = conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise RecordStoreError(f"Failed to delete player: {exc}") from exc
        return cursor.rowcount > 0

    async def list_players(self, sort_by: str | None = None, limit: int | None = None) -> list[PlayerRecord]:
        check_sort_key(sort_by)
        # sort_by is validated against SORT_KEYS above, so interpolation is safe
        order = f"{sort_by} DESC, rowid ASC" if sort_by else "rowid ASC"
        sql = f"{_SELECT_SQL} ORDER BY {order}"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (max(limit, 0),)
        try:
            rows = self._db.connection.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Failed to list players: {exc}") from exc
        return [row_to_record(row) for row in rows]

    def _fetch_one(self, sql: str, params: tuple) -> PlayerRecord | None:
        try:
            row = self._db.connection.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Failed to read player: {exc}") from exc
        if row is None:
            return None
        return row_to_record(row)
