"""Player endpoints: register, login, fetch, update, outcome, delete, leaderboard."""

from __future__ import annotations

import functools
from http import HTTPStatus
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

from accounts.errors import PlayerServiceError
from accounts.types import (
    LoginRequest,
    OutcomeRequest,
    PlayerAuthRequest,
    PlayerChanges,
    RegisterRequest,
    UpdateRequest,
)
from accounts.views.responses import (
    BodyError,
    envelope,
    error_response,
    leaderboard_entry,
    player_view,
    read_json_object,
)
from shared.validators import clamp_limit

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pydantic import BaseModel
    from starlette.requests import Request
    from starlette.responses import Response

    from accounts.server.settings import AccountsServerSettings
    from accounts.service import PlayerService


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "body"
    return f"Invalid field '{location}': {first['msg']}"


M = TypeVar("M", bound="BaseModel")


def _parse(model: type[M], data: dict) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BodyError(_describe_validation_error(e)) from e


def service_endpoint(handler: Callable[[Request], Awaitable[Response]]) -> Callable[[Request], Awaitable[Response]]:
    """Translate body and service errors into envelope responses."""

    @functools.wraps(handler)
    async def wrapper(request: Request) -> Response:
        try:
            return await handler(request)
        except BodyError as e:
            return envelope(False, str(e), status_code=e.status_code)
        except PlayerServiceError as e:
            return error_response(e)

    return wrapper


def _service(request: Request) -> PlayerService:
    return request.app.state.player_service


async def _body(request: Request) -> dict:
    settings: AccountsServerSettings = request.app.state.settings
    return await read_json_object(request, max_bytes=settings.max_body_bytes)


@service_endpoint
async def register(request: Request) -> Response:
    """POST /player/register {handle, credential, email?}."""
    req = _parse(RegisterRequest, await _body(request))
    record = await _service(request).register(req.handle, req.credential, req.email)
    return envelope(True, "Player registered successfully", player_view(record), status_code=HTTPStatus.CREATED)


@service_endpoint
async def login(request: Request) -> Response:
    """POST /player/login {handle, credential}."""
    req = _parse(LoginRequest, await _body(request))
    record = await _service(request).login(req.handle, req.credential)
    return envelope(True, "Login successful", player_view(record))


@service_endpoint
async def get_player(request: Request) -> Response:
    """GET /player?id=...|handle=...&credential=..."""
    req = _parse(PlayerAuthRequest, dict(request.query_params))
    record = await _service(request).fetch(req.ref, req.credential)
    return envelope(True, "Player data retrieved", player_view(record))


@service_endpoint
async def get_player_from_body(request: Request) -> Response:
    """POST /player/get {id|handle, credential} - keeps the credential out of URLs and access logs."""
    req = _parse(PlayerAuthRequest, await _body(request))
    record = await _service(request).fetch(req.ref, req.credential)
    return envelope(True, "Player data retrieved", player_view(record))


@service_endpoint
async def update_player(request: Request) -> Response:
    """PUT /player {id|handle, currentCredential, level?, experience?, email?, score?, wins?, losses?, credential?}."""
    body = await _body(request)
    req = _parse(UpdateRequest, body)
    changes = _parse(PlayerChanges, body)
    record = await _service(request).update(req.ref, req.current_credential, changes)
    return envelope(True, "Player data updated", player_view(record))


@service_endpoint
async def report_outcome(request: Request) -> Response:
    """POST /player/outcome {id|handle, credential, won}."""
    req = _parse(OutcomeRequest, await _body(request))
    record = await _service(request).report_outcome(req.ref, req.credential, won=req.won)
    return envelope(True, "Outcome recorded", player_view(record))


@service_endpoint
async def delete_player(request: Request) -> Response:
    """DELETE /player {id|handle, credential}."""
    req = _parse(PlayerAuthRequest, await _body(request))
    await _service(request).delete(req.ref, req.credential)
    return envelope(True, "Player deleted successfully")


@service_endpoint
async def delete_player_by_id(request: Request) -> Response:
    """DELETE /player/{player_id} {credential}."""
    body = await _body(request)
    req = _parse(PlayerAuthRequest, {**body, "id": request.path_params["player_id"], "handle": None})
    await _service(request).delete(req.ref, req.credential)
    return envelope(True, "Player deleted successfully")


@service_endpoint
async def leaderboard(request: Request) -> Response:
    """GET /leaderboard?limit=N - public, handles and scores only."""
    settings: AccountsServerSettings = request.app.state.settings
    limit = clamp_limit(
        request.query_params.get("limit"),
        default=settings.leaderboard_default_limit,
        maximum=settings.leaderboard_max_limit,
    )
    records = await _service(request).leaderboard(limit)
    return envelope(True, "Leaderboard retrieved", [leaderboard_entry(r) for r in records])
