"""SQLite-specific tests for SqlitePlayerRepository."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from shared.dal.player_repository import RecordStoreError
from shared.db.connection import Database
from shared.db.player_repository import SqlitePlayerRepository

if TYPE_CHECKING:
    from pathlib import Path

HASH = "simple$hash"


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "test.db")
    database.connect()
    yield database
    database.close()


class TestPersistence:
    async def test_records_survive_reconnect(self, tmp_path: Path) -> None:
        path = tmp_path / "test.db"
        first = Database(path)
        first.connect()
        created = await SqlitePlayerRepository(first).create_player("alice", HASH)
        first.close()

        second = Database(path)
        second.connect()
        found = await SqlitePlayerRepository(second).get_by_handle("alice")
        second.close()

        assert found == created

    async def test_stores_hash_not_plaintext(self, db: Database) -> None:
        repo = SqlitePlayerRepository(db)
        await repo.create_player("alice", HASH)
        row = db.connection.execute("SELECT password_hash FROM players").fetchone()
        assert row == (HASH,)


class TestStoreErrors:
    def _broken_db(self) -> MagicMock:
        broken = MagicMock(spec=Database)
        broken.connection.execute.side_effect = sqlite3.OperationalError("disk I/O error")
        return broken

    async def test_read_failure_raises_record_store_error(self) -> None:
        repo = SqlitePlayerRepository(self._broken_db())
        with pytest.raises(RecordStoreError, match="Failed to read player"):
            await repo.get_by_handle("alice")

    async def test_insert_failure_raises_record_store_error(self) -> None:
        repo = SqlitePlayerRepository(self._broken_db())
        with pytest.raises(RecordStoreError, match="Failed to insert player"):
            await repo.create_player("alice", HASH)

    async def test_outcome_failure_raises_record_store_error(self) -> None:
        repo = SqlitePlayerRepository(self._broken_db())
        with pytest.raises(RecordStoreError, match="Failed to record outcome"):
            await repo.apply_outcome("p1", won=True)

    async def test_integer_beyond_column_range_raises_record_store_error(self, db: Database) -> None:
        repo = SqlitePlayerRepository(db)
        created = await repo.create_player("alice", HASH)
        with pytest.raises(RecordStoreError, match="Failed to update player"):
            await repo.update_player(created.player_id, {"level": 2**64})
        assert (await repo.get_by_id(created.player_id)).level == 1

    async def test_list_failure_raises_record_store_error(self) -> None:
        repo = SqlitePlayerRepository(self._broken_db())
        with pytest.raises(RecordStoreError, match="Failed to list players"):
            await repo.list_players(sort_by="score")

    async def test_closed_database_is_not_a_store_error(self, db: Database) -> None:
        repo = SqlitePlayerRepository(db)
        db.close()
        with pytest.raises(RuntimeError, match="not connected"):
            await repo.get_by_id("p1")
