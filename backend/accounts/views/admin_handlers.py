"""Admin endpoints, gated by the shared admin token (see accounts.auth.policy.admin_only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from accounts.views.player_handlers import service_endpoint
from accounts.views.responses import admin_entry, envelope

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from accounts.service import PlayerService


@service_endpoint
async def list_players(request: Request) -> Response:
    """GET /players and POST /players/get - every record's stats in registration order."""
    player_service: PlayerService = request.app.state.player_service
    records = await player_service.list_players()
    return envelope(True, "Players retrieved", [admin_entry(r) for r in records])
