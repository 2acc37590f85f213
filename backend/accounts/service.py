"""Player record service: registration, login, and credential-gated record access.

There is no session layer. Every read of private data and every mutation
re-presents the plaintext credential, which is verified against the stored
hash before the store is touched.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from accounts.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
    UnavailableError,
)
from shared.auth.password import BCRYPT_MAX_BYTES
from shared.dal.models import HANDLE_MAX_LENGTH
from shared.dal.player_repository import DuplicateHandleError, RecordStoreError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

    from accounts.types import PlayerChanges, PlayerRef
    from shared.auth.password import PasswordHasher
    from shared.dal.models import PlayerRecord
    from shared.dal.player_repository import PlayerRepository

logger = structlog.get_logger()

CREDENTIAL_MAX_BYTES = BCRYPT_MAX_BYTES
EMAIL_MAX_LENGTH = 254

DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 50

_NON_NEGATIVE_FIELDS = ("level", "experience", "wins", "losses")
_DECOY_CREDENTIAL = "timing-equalizer"


class PlayerService:
    """Coordinate registration, login, fetch, update, delete, and ranking of player records."""

    def __init__(
        self,
        player_repo: PlayerRepository,
        *,
        password_hasher: PasswordHasher,
        leaderboard_default_limit: int = DEFAULT_LEADERBOARD_LIMIT,
        leaderboard_max_limit: int = MAX_LEADERBOARD_LIMIT,
    ) -> None:
        self._player_repo = player_repo
        self._hasher = password_hasher
        self._leaderboard_default_limit = leaderboard_default_limit
        self._leaderboard_max_limit = leaderboard_max_limit
        self._decoy_hash_value: str | None = None

    async def warm_up(self) -> None:
        """Hash the unknown-record decoy up front.

        Until this runs, the first lookup of a missing record pays for an
        extra hash and answers slower than a wrong credential would.
        """
        await self._decoy_hash()

    async def register(self, handle: str, credential: str, email: str | None = None) -> PlayerRecord:
        """Create a record. Raises InvalidInputError or ConflictError."""
        handle = _validate_handle(handle)
        _validate_credential(credential)
        email = _normalize_email(email)

        password_hash = await self._hasher.hash(credential)
        with self._store_errors("register"):
            try:
                record = await self._player_repo.create_player(handle, password_hash, email)
            except DuplicateHandleError as e:
                raise ConflictError("Handle already exists") from e
        logger.info("player registered", player_id=record.player_id, handle=record.handle)
        return record

    async def login(self, handle: str, credential: str) -> PlayerRecord:
        """Verify credentials and stamp ``last_login_at``."""
        handle = _require_text(handle, "handle").strip()
        _require_text(credential, "credential")

        with self._store_errors("login"):
            record = await self._player_repo.get_by_handle(handle)
        record = await self._verify(record, credential)

        with self._store_errors("login"):
            updated = await self._player_repo.update_player(record.player_id, {"last_login_at": _utcnow()})
        if updated is None:
            raise UnauthorizedError
        logger.info("player logged in", player_id=updated.player_id)
        return updated

    async def fetch(self, ref: PlayerRef, credential: str) -> PlayerRecord:
        return await self._authenticate(ref, credential)

    async def update(self, ref: PlayerRef, credential: str, changes: PlayerChanges) -> PlayerRecord:
        """Apply a partial update after re-verifying the current credential.

        The change set is validated before the store is read. An empty change
        set still runs the credential check and returns the record as stored.
        A new credential is hashed before reaching the store.
        """
        values = _collect_changes(changes)
        if changes.new_credential is not None:
            _validate_credential(changes.new_credential)
        record = await self._authenticate(ref, credential)
        if changes.new_credential is not None:
            values["password_hash"] = await self._hasher.hash(changes.new_credential)
        if not values:
            return record

        with self._store_errors("update"):
            updated = await self._player_repo.update_player(record.player_id, values)
        if updated is None:
            raise NotFoundError
        logger.info("player updated", player_id=updated.player_id, fields=sorted(values))
        return updated

    async def report_outcome(self, ref: PlayerRef, credential: str, *, won: bool) -> PlayerRecord:
        """Record one game result server-side. The store applies the score floor rule atomically."""
        record = await self._authenticate(ref, credential)
        with self._store_errors("report_outcome"):
            updated = await self._player_repo.apply_outcome(record.player_id, won=won)
        if updated is None:
            raise NotFoundError
        logger.info("outcome reported", player_id=updated.player_id, won=won, score=updated.score)
        return updated

    async def delete(self, ref: PlayerRef, credential: str) -> None:
        """Remove the record permanently."""
        record = await self._authenticate(ref, credential)
        with self._store_errors("delete"):
            deleted = await self._player_repo.delete_player(record.player_id)
        if not deleted:
            raise NotFoundError
        logger.info("player deleted", player_id=record.player_id)

    async def leaderboard(self, limit: int | None = None) -> list[PlayerRecord]:
        """Top players by score, oldest registration first among equal scores."""
        if limit is None or limit <= 0:
            limit = self._leaderboard_default_limit
        limit = min(limit, self._leaderboard_max_limit)
        with self._store_errors("leaderboard"):
            return await self._player_repo.list_players(sort_by="score", limit=limit)

    async def list_players(self) -> list[PlayerRecord]:
        """Every record in registration order (admin listing)."""
        with self._store_errors("list_players"):
            return await self._player_repo.list_players()

    # -- private helpers --

    async def _authenticate(self, ref: PlayerRef, credential: str) -> PlayerRecord:
        if not ref.player_id and not (ref.handle and ref.handle.strip()):
            raise InvalidInputError("Provide id or handle")
        _require_text(credential, "credential")

        with self._store_errors("authenticate"):
            if ref.player_id:
                record = await self._player_repo.get_by_id(ref.player_id)
            else:
                record = await self._player_repo.get_by_handle(ref.handle.strip())
        return await self._verify(record, credential)

    async def _verify(self, record: PlayerRecord | None, credential: str) -> PlayerRecord:
        """Raise UnauthorizedError for a missing record or a wrong credential alike.

        A missing record still pays for one hash verification so response
        timing does not reveal which handles exist.
        """
        if record is None:
            await self._hasher.verify(credential, await self._decoy_hash())
            raise UnauthorizedError
        if not await self._hasher.verify(credential, record.password_hash):
            logger.info("credential rejected", player_id=record.player_id)
            raise UnauthorizedError
        return record

    async def _decoy_hash(self) -> str:
        if self._decoy_hash_value is None:
            self._decoy_hash_value = await self._hasher.hash(_DECOY_CREDENTIAL)
        return self._decoy_hash_value

    @contextlib.contextmanager
    def _store_errors(self, operation: str) -> Iterator[None]:
        """Log store failures in full and surface them as UnavailableError."""
        try:
            yield
        except RecordStoreError as e:
            logger.exception("record store failure", operation=operation)
            raise UnavailableError from e


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _require_text(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} is required")
    return value


def _validate_handle(handle: str | None) -> str:
    """Trim surrounding whitespace and check 1-32 printable characters."""
    handle = _require_text(handle, "handle").strip()
    if len(handle) > HANDLE_MAX_LENGTH:
        raise InvalidInputError(f"handle must be at most {HANDLE_MAX_LENGTH} characters")
    if not handle.isprintable():
        raise InvalidInputError("handle must contain only printable characters")
    return handle


def _validate_credential(credential: str | None) -> None:
    _require_text(credential, "credential")
    if len(credential.encode("utf-8")) > CREDENTIAL_MAX_BYTES:
        raise InvalidInputError(f"credential must not exceed {CREDENTIAL_MAX_BYTES} bytes when encoded")


def _normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip()
    if not email:
        return None
    if len(email) > EMAIL_MAX_LENGTH:
        raise InvalidInputError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
    return email


def _collect_changes(changes: PlayerChanges) -> dict[str, Any]:
    """Turn a PlayerChanges payload into store columns, validating as we go."""
    values: dict[str, Any] = {}
    for field in _NON_NEGATIVE_FIELDS:
        value = getattr(changes, field)
        if value is None:
            continue
        if value < 0:
            raise InvalidInputError(f"{field} must not be negative")
        values[field] = value
    if changes.score is not None:
        values["score"] = max(0, changes.score)
    if "email" in changes.model_fields_set:
        values["email"] = _normalize_email(changes.email)
    return values
