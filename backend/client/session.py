"""Logged-in player session for the game client.

The plaintext credential lives only in this object's memory while logged in;
it is never written to the mirror or to logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from client.api import PlayerServiceClient
from client.mirror import LocalMirror

if TYPE_CHECKING:
    from types import TracebackType

    from client.api import PlayerView, ServiceResult
    from client.mirror import MirroredPlayer
    from client.settings import ClientSettings

logger = structlog.get_logger()


class PlayerSession:
    """Drive the service for one player and keep the local mirror in step.

    Use as an async context manager; leaving the block logs out and closes
    the underlying service client.
    """

    def __init__(self, client: PlayerServiceClient, mirror: LocalMirror) -> None:
        self.client = client
        self.mirror = mirror
        self._player_id: str | None = None
        self._handle: str | None = None
        self._credential: str | None = None

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> PlayerSession:
        client = PlayerServiceClient(settings.api_base_url, timeout=settings.timeout_seconds)
        return cls(client, LocalMirror(settings.mirror_path))

    async def __aenter__(self) -> PlayerSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        self._forget()
        await self.client.aclose()

    @property
    def logged_in(self) -> bool:
        return self._credential is not None

    @property
    def handle(self) -> str | None:
        return self._handle

    @property
    def player_id(self) -> str | None:
        return self._player_id

    @property
    def current(self) -> MirroredPlayer | None:
        """Mirrored record of the logged-in player, if any."""
        if self._handle is None:
            return None
        return self.mirror.get(self._handle)

    async def register(self, handle: str, credential: str, email: str | None = None) -> ServiceResult[PlayerView]:
        """Create an account. Does not log in; call ``login`` afterwards."""
        result = await self.client.register(handle, credential, email)
        self._mirror(result)
        return result

    async def login(self, handle: str, credential: str) -> ServiceResult[PlayerView]:
        result = await self.client.login(handle, credential)
        if result.success and result.data is not None:
            self._player_id = result.data.player_id
            self._handle = result.data.handle
            self._credential = credential
            self.mirror.record(result.data)
            self.mirror.set_current(result.data.handle)
            logger.info("player session started", handle=result.data.handle)
        return result

    async def refresh(self) -> ServiceResult[PlayerView]:
        """Re-read the authoritative record and overwrite the mirror with it."""
        self._require_login()
        result = await self.client.fetch(self._credential, player_id=self._player_id)
        self._mirror(result)
        return result

    async def update_profile(
        self,
        *,
        level: int | None = None,
        experience: int | None = None,
        email: str | None = None,
    ) -> ServiceResult[PlayerView]:
        fields: dict[str, Any] = {"level": level, "experience": experience, "email": email}
        return await self._update({k: v for k, v in fields.items() if v is not None})

    async def change_credential(self, new_credential: str) -> ServiceResult[PlayerView]:
        """Change the credential; the in-memory copy switches only once the service accepts it."""
        result = await self._update({"new_credential": new_credential})
        if result.success:
            self._credential = new_credential
        return result

    async def push_totals(self, *, score: int, wins: int, losses: int) -> ServiceResult[PlayerView]:
        """Send aggregate score/wins/losses for the logged-in player."""
        return await self._update({"score": score, "wins": wins, "losses": losses})

    async def delete_account(self) -> ServiceResult[None]:
        """Delete the account permanently, then drop its mirror entry and log out."""
        self._require_login()
        handle = self._handle
        result = await self.client.delete(self._credential, player_id=self._player_id)
        if result.success:
            self.mirror.remove(handle)
            self._forget()
            logger.info("player account deleted", handle=handle)
        return result

    def logout(self) -> None:
        self._forget()
        self.mirror.set_current(None)

    async def _update(self, fields: dict[str, Any]) -> ServiceResult[PlayerView]:
        self._require_login()
        result = await self.client.update(self._credential, player_id=self._player_id, **fields)
        self._mirror(result)
        return result

    def _mirror(self, result: ServiceResult[PlayerView]) -> None:
        if result.success and result.data is not None:
            self.mirror.record(result.data)

    def _forget(self) -> None:
        self._player_id = None
        self._handle = None
        self._credential = None

    def _require_login(self) -> None:
        if self._credential is None:
            raise RuntimeError("No player is logged in")
