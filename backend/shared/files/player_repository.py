"""File-backed player repository storing the whole collection as one JSON array."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
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
from shared.stats import apply_outcome as apply_outcome_rule

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

logger = structlog.get_logger()

_FILE_PERMISSIONS = 0o600  # owner read/write only


class FilePlayerRepository(PlayerRepository):
    """File-backed player repository.

    Keeps the collection in memory in insertion order and rewrites the whole
    file on every mutation. Uniqueness is a linear scan. All read-modify-write
    cycles run under one asyncio.Lock, which makes the store safe within a
    single process only: two processes writing the same file will lose updates.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)
        self._players: list[PlayerRecord] = []
        self._lock = asyncio.Lock()
        self._loaded = False

    async def _ensure_loaded(self) -> None:
        """Load players from file on first access."""
        async with self._lock:
            if self._loaded:
                return
            self._load_from_file()
            self._loaded = True

    def _load_from_file(self) -> None:
        """Load the JSON array into memory.

        Starts with an empty collection when the file does not exist yet.
        Raises on read/parse failures for an existing file to prevent
        data loss from overwriting a file we could not read.
        """
        self._players = []

        if not self._file_path.exists():
            return

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            msg = f"Failed to load players from {self._file_path}"
            raise RecordStoreError(msg) from exc

        if not isinstance(data, list):
            msg = f"Expected JSON array at root in {self._file_path}"
            raise RecordStoreError(msg)

        try:
            self._players = [PlayerRecord.model_validate(item) for item in data]
        except ValueError as exc:
            msg = f"Failed to parse player data from {self._file_path}"
            raise RecordStoreError(msg) from exc

    def _save_to_file(self, players: list[PlayerRecord]) -> None:
        """Atomically write the collection to the JSON file.

        Writes to a temporary file in the same directory, then renames
        into place so readers never see a partial/truncated file.
        """
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps([p.model_dump(mode="json") for p in players], indent=2).encode("utf-8")

            fd, tmp_path = tempfile.mkstemp(
                dir=self._file_path.parent,
                prefix=".players_",
                suffix=".tmp",
            )
        except OSError as exc:
            raise RecordStoreError(f"Failed to write players to {self._file_path}") from exc
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fchmod(f.fileno(), _FILE_PERMISSIONS)
            Path(tmp_path).replace(self._file_path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise RecordStoreError(f"Failed to write players to {self._file_path}") from exc

    def _commit(self, players: list[PlayerRecord]) -> None:
        """Persist a new collection, swapping it in memory only once the file is written."""
        self._save_to_file(players)
        self._players = players

    def _index_of(self, player_id: str) -> int | None:
        return next((i for i, p in enumerate(self._players) if p.player_id == player_id), None)

    async def create_player(self, handle: str, password_hash: str, email: str | None = None) -> PlayerRecord:
        """Append a player. Raises DuplicateHandleError if the handle exists (case-sensitive)."""
        await self._ensure_loaded()
        async with self._lock:
            if any(existing.handle == handle for existing in self._players):
                raise DuplicateHandleError(handle)
            record = PlayerRecord(
                player_id=uuid4().hex,
                handle=handle,
                password_hash=password_hash,
                email=email,
                created_at=datetime.now(tz=UTC),
            )
            self._commit([*self._players, record])
        return record

    async def get_by_handle(self, handle: str) -> PlayerRecord | None:
        await self._ensure_loaded()
        return next((p for p in self._players if p.handle == handle), None)

    async def get_by_id(self, player_id: str) -> PlayerRecord | None:
        await self._ensure_loaded()
        return next((p for p in self._players if p.player_id == player_id), None)

    async def update_player(self, player_id: str, changes: Mapping[str, Any]) -> PlayerRecord | None:
        check_changes(changes)
        await self._ensure_loaded()
        async with self._lock:
            index = self._index_of(player_id)
            if index is None:
                return None
            current = self._players[index]
            if not changes:
                return current
            # model_validate re-checks field constraints that model_copy would skip
            updated = PlayerRecord.model_validate({**current.model_dump(), **changes})
            players = list(self._players)
            players[index] = updated
            self._commit(players)
        return updated

    async def apply_outcome(self, player_id: str, *, won: bool) -> PlayerRecord | None:
        await self._ensure_loaded()
        async with self._lock:
            index = self._index_of(player_id)
            if index is None:
                return None
            current = self._players[index]
            totals = apply_outcome_rule(current.score, current.wins, current.losses, won=won)
            updated = current.model_copy(update=totals._asdict())
            players = list(self._players)
            players[index] = updated
            self._commit(players)
        return updated

    async def delete_player(self, player_id: str) -> bool:
        await self._ensure_loaded()
        async with self._lock:
            index = self._index_of(player_id)
            if index is None:
                return False
            players = list(self._players)
            del players[index]
            self._commit(players)
        return True

    async def list_players(self, sort_by: str | None = None, limit: int | None = None) -> list[PlayerRecord]:
        check_sort_key(sort_by)
        await self._ensure_loaded()
        players = list(self._players)
        if sort_by is not None:
            # sorted() is stable, so insertion order breaks ties
            players = sorted(players, key=lambda p: getattr(p, sort_by), reverse=True)
        if limit is not None:
            players = players[: max(limit, 0)]
        return players
