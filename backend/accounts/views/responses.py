"""Response envelope and JSON projections shared by the accounts handlers.

Every response body is ``{"success": bool, "message": str, "data"?: ...}``.
Projections are built field by field so credential hashes can never leak.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from accounts.errors import ErrorKind

if TYPE_CHECKING:
    from datetime import datetime

    from starlette.requests import Request

    from accounts.errors import PlayerServiceError
    from shared.dal.models import PlayerRecord

ERROR_STATUS: dict[ErrorKind, HTTPStatus] = {
    ErrorKind.INVALID_INPUT: HTTPStatus.BAD_REQUEST,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.UNAVAILABLE: HTTPStatus.SERVICE_UNAVAILABLE,
}


class BodyError(Exception):
    """The request body could not be used; carries the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = status_code


def envelope(success: bool, message: str, data: object = None, *, status_code: int = HTTPStatus.OK) -> JSONResponse:  # noqa: FBT001
    body: dict[str, object] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return JSONResponse(body, status_code=status_code)


def error_response(exc: PlayerServiceError) -> JSONResponse:
    return envelope(False, str(exc), status_code=ERROR_STATUS[exc.kind])


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def player_view(record: PlayerRecord) -> dict[str, object]:
    """Public projection of a record, with the derived win rate."""
    return {
        "id": record.player_id,
        "handle": record.handle,
        "email": record.email,
        "level": record.level,
        "experience": record.experience,
        "score": record.score,
        "wins": record.wins,
        "losses": record.losses,
        "winRate": record.win_rate,
        "createdAt": _iso(record.created_at),
        "lastLoginAt": _iso(record.last_login_at),
    }


def leaderboard_entry(record: PlayerRecord) -> dict[str, object]:
    return {"handle": record.handle, "score": record.score}


def admin_entry(record: PlayerRecord) -> dict[str, object]:
    """Admin listing row: stats only, no email or timestamps."""
    return {
        "id": record.player_id,
        "handle": record.handle,
        "level": record.level,
        "experience": record.experience,
        "score": record.score,
        "wins": record.wins,
        "losses": record.losses,
        "winRate": record.win_rate,
    }


async def read_json_object(request: Request, *, max_bytes: int) -> dict:
    """Parse the body as a JSON object. An empty body counts as ``{}``.

    Raises BodyError for oversized, malformed, or non-object bodies.
    """
    raw_body = await request.body()
    if len(raw_body) > max_bytes:
        raise BodyError("Request body too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    if not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body)
    except (ValueError, json.JSONDecodeError) as e:
        raise BodyError("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise BodyError("JSON body must be an object")
    return body
