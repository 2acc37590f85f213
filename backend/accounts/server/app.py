from __future__ import annotations

import contextlib
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from accounts.auth.policy import admin_only, player_credential, public_route, validate_route_auth_policy
from accounts.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from accounts.server.settings import AccountsServerSettings
from accounts.service import PlayerService
from accounts.views.admin_handlers import list_players
from accounts.views.player_handlers import (
    delete_player,
    delete_player_by_id,
    get_player,
    get_player_from_body,
    leaderboard,
    login,
    register,
    report_outcome,
    update_player,
)
from accounts.views.responses import envelope
from shared.auth.password import get_hasher
from shared.auth.settings import AuthSettings
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.db import Database, SqlitePlayerRepository
from shared.files import FilePlayerRepository
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from shared.dal.player_repository import PlayerRepository


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    """Render routing errors (unknown path, wrong method) in the standard envelope."""
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    return envelope(False, http_exc.detail or "", status_code=http_exc.status_code)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


def build_player_repository(auth_settings: AuthSettings) -> tuple[PlayerRepository, Database | None]:
    """Create the configured record store. Returns the Database to close, if any."""
    if auth_settings.storage_backend == "file":
        logger.warning(
            "using flat-file player store; single process only, not for production",
            path=auth_settings.players_file,
        )
        return FilePlayerRepository(auth_settings.players_file), None

    db = Database(auth_settings.database_path)
    db.connect()
    db.import_from_json(auth_settings.players_file)
    return SqlitePlayerRepository(db), db


def create_app(
    settings: AccountsServerSettings | None = None,
    auth_settings: AuthSettings | None = None,  # required in production (via get_app)
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = AccountsServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()  # type: ignore[call-arg]

    routes = [
        # Player routes: the service verifies the player's credential on each call
        Route("/player", player_credential(get_player), methods=["GET"], name="get_player"),
        Route("/player", player_credential(update_player), methods=["PUT"], name="update_player"),
        Route("/player", player_credential(delete_player), methods=["DELETE"], name="delete_player"),
        Route("/player/login", player_credential(login), methods=["POST"], name="login"),
        Route("/player/get", player_credential(get_player_from_body), methods=["POST"], name="get_player_from_body"),
        Route("/player/outcome", player_credential(report_outcome), methods=["POST"], name="report_outcome"),
        Route(
            "/player/{player_id}",
            player_credential(delete_player_by_id),
            methods=["DELETE"],
            name="delete_player_by_id",
        ),
        # Legacy plural login path used by older game builds
        Route("/players/login", player_credential(login), methods=["POST"], name="legacy_login"),
        # Admin routes
        Route("/players", admin_only(list_players), methods=["GET"], name="list_players"),
        Route("/players/get", admin_only(list_players), methods=["POST"], name="list_players_post"),
        # Public routes
        Route("/player/register", public_route(register), methods=["POST"], name="register"),
        Route("/players/register", public_route(register), methods=["POST"], name="legacy_register"),
        Route("/leaderboard", public_route(leaderboard), methods=["GET"], name="leaderboard"),
        Route("/health", public_route(health), methods=["GET"], name="health"),
    ]

    validate_route_auth_policy(routes)

    player_repo, db = build_player_repository(auth_settings)
    hasher = get_hasher(auth_settings.password_hasher, rounds=auth_settings.bcrypt_rounds)
    player_service = PlayerService(
        player_repo,
        password_hasher=hasher,
        leaderboard_default_limit=settings.leaderboard_default_limit,
        leaderboard_max_limit=settings.leaderboard_max_limit,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        await player_service.warm_up()
        yield
        if db is not None:
            db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={HTTPException: _http_error_handler},
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Token"],
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.player_service = player_service

    logger.info("accounts server ready", storage_backend=auth_settings.storage_backend)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory accounts.server.app:get_app."""
    s = AccountsServerSettings()
    auth = AuthSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, auth_settings=auth)
