"""Async HTTP client for the player record service.

Every call resolves to exactly one ServiceResult, success or failure.
Transport errors and malformed responses become failure results rather than
exceptions, and nothing is retried: mutating calls must not be replayed
behind the caller's back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from shared.stats import win_rate

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

logger = structlog.get_logger()


class PlayerView(BaseModel, frozen=True):
    """Player record as returned by the service (no credential fields exist on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    player_id: str = Field(alias="id")
    handle: str
    email: str | None = None
    level: int = 1
    experience: int = 0
    score: int = 0
    wins: int = 0
    losses: int = 0
    created_at: datetime | None = Field(default=None, alias="createdAt")
    last_login_at: datetime | None = Field(default=None, alias="lastLoginAt")

    @property
    def win_rate(self) -> float:
        return win_rate(self.wins, self.losses)


class LeaderboardEntry(BaseModel, frozen=True):
    handle: str
    score: int


_LEADERBOARD_ADAPTER = TypeAdapter(list[LeaderboardEntry])


T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of one service call. ``status_code`` is None when the service was unreachable."""

    success: bool
    message: str
    status_code: int | None = None
    data: T | None = None


class PlayerServiceClient:
    """Thin async wrapper over the accounts HTTP API.

    Owns an httpx.AsyncClient; close it with ``aclose()`` or use the client
    as an async context manager.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> PlayerServiceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def register(self, handle: str, credential: str, email: str | None = None) -> ServiceResult[PlayerView]:
        body: dict[str, Any] = {"handle": handle, "credential": credential}
        if email:
            body["email"] = email
        return await self._call("POST", "/player/register", PlayerView.model_validate, json=body)

    async def login(self, handle: str, credential: str) -> ServiceResult[PlayerView]:
        body = {"handle": handle, "credential": credential}
        return await self._call("POST", "/player/login", PlayerView.model_validate, json=body)

    async def fetch(
        self,
        credential: str,
        *,
        player_id: str | None = None,
        handle: str | None = None,
    ) -> ServiceResult[PlayerView]:
        """Fetch via POST /player/get so the credential stays out of URLs."""
        body = {**_ref(player_id, handle), "credential": credential}
        return await self._call("POST", "/player/get", PlayerView.model_validate, json=body)

    async def update(
        self,
        current_credential: str,
        *,
        player_id: str | None = None,
        handle: str | None = None,
        **fields: Any,  # noqa: ANN401
    ) -> ServiceResult[PlayerView]:
        """Send a partial update. ``new_credential`` in fields changes the credential."""
        body: dict[str, Any] = {**_ref(player_id, handle), "currentCredential": current_credential}
        new_credential = fields.pop("new_credential", None)
        if new_credential is not None:
            body["credential"] = new_credential
        body.update(fields)
        return await self._call("PUT", "/player", PlayerView.model_validate, json=body)

    async def delete(
        self,
        credential: str,
        *,
        player_id: str | None = None,
        handle: str | None = None,
    ) -> ServiceResult[None]:
        body = {**_ref(player_id, handle), "credential": credential}
        return await self._call("DELETE", "/player", None, json=body)

    async def leaderboard(self, limit: int | None = None) -> ServiceResult[list[LeaderboardEntry]]:
        params = {"limit": limit} if limit is not None else None
        return await self._call("GET", "/leaderboard", _LEADERBOARD_ADAPTER.validate_python, params=params)

    async def _call(
        self,
        method: str,
        path: str,
        parse: Callable[[Any], T] | None,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> ServiceResult[T]:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            logger.warning("player service unreachable", method=method, path=path, error=str(e))
            return ServiceResult(success=False, message=f"Could not reach player service: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return ServiceResult(
                success=False,
                message=f"Unexpected response from player service (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        message = str(payload.get("message", ""))
        if not payload.get("success") or not response.is_success:
            return ServiceResult(success=False, message=message, status_code=response.status_code)

        data = None
        if parse is not None:
            try:
                data = parse(payload.get("data"))
            except ValidationError:
                logger.warning("malformed data from player service", method=method, path=path)
                return ServiceResult(
                    success=False,
                    message="Malformed data from player service",
                    status_code=response.status_code,
                )
        return ServiceResult(success=True, message=message, status_code=response.status_code, data=data)


def _ref(player_id: str | None, handle: str | None) -> dict[str, str]:
    if player_id:
        return {"id": player_id}
    if handle:
        return {"handle": handle}
    raise ValueError("player_id or handle is required")
