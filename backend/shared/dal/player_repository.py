"""Abstract interface for player record persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from shared.dal.models import MUTABLE_FIELDS, SORT_KEYS

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from shared.dal.models import PlayerRecord


class DuplicateHandleError(ValueError):
    """A record with the same handle already exists."""

    def __init__(self, handle: str) -> None:
        super().__init__(f"Handle '{handle}' already taken")
        self.handle = handle


class RecordStoreError(Exception):
    """The backing store failed to read or write (I/O, database, corrupt data)."""


class PlayerRepository(ABC):
    """Abstract interface for player persistence.

    Implementations can use SQLite, a flat JSON file, etc. The store never
    hashes credentials: ``password_hash`` values arrive already encoded.
    """

    @abstractmethod
    async def create_player(self, handle: str, password_hash: str, email: str | None = None) -> PlayerRecord:
        """Insert a new record. Raises DuplicateHandleError when the handle exists."""

    @abstractmethod
    async def get_by_handle(self, handle: str) -> PlayerRecord | None: ...

    @abstractmethod
    async def get_by_id(self, player_id: str) -> PlayerRecord | None: ...

    @abstractmethod
    async def update_player(self, player_id: str, changes: Mapping[str, Any]) -> PlayerRecord | None:
        """Apply a partial update. Returns None when the record no longer exists."""

    @abstractmethod
    async def apply_outcome(self, player_id: str, *, won: bool) -> PlayerRecord | None:
        """Add one game result to the stored totals as a single atomic step.

        Follows shared.stats.apply_outcome. Returns None when the record no
        longer exists.
        """

    @abstractmethod
    async def delete_player(self, player_id: str) -> bool: ...

    @abstractmethod
    async def list_players(self, sort_by: str | None = None, limit: int | None = None) -> list[PlayerRecord]:
        """List records, descending by ``sort_by`` with insertion order breaking ties."""


def check_changes(changes: Mapping[str, Any]) -> None:
    """Raise ValueError for keys that are not mutable record columns."""
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")


def check_sort_key(sort_by: str | None) -> None:
    if sort_by is not None and sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by!r}")
