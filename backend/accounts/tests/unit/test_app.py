"""Tests for accounts app construction."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from starlette.routing import Route
from starlette.testclient import TestClient

from accounts.auth.policy import AUTH_POLICY_ATTR
from accounts.server.app import build_player_repository
from accounts.service import PlayerService
from accounts.tests.helpers import ADMIN_TOKEN, build_test_app
from shared.auth.settings import AuthSettings
from shared.dal.models import PlayerRecord
from shared.db import SqlitePlayerRepository
from shared.files import FilePlayerRepository

if TYPE_CHECKING:
    from pathlib import Path


def _auth_settings(tmp_path: Path, backend: str) -> AuthSettings:
    return AuthSettings(
        admin_token=ADMIN_TOKEN,
        storage_backend=backend,
        database_path=str(tmp_path / "storage.db"),
        players_file=str(tmp_path / "players.json"),
    )


class TestBuildPlayerRepository:
    def test_sqlite_backend(self, tmp_path: Path):
        repo, db = build_player_repository(_auth_settings(tmp_path, "sqlite"))
        assert isinstance(repo, SqlitePlayerRepository)
        assert db is not None
        db.close()

    def test_file_backend_has_no_database(self, tmp_path: Path):
        repo, db = build_player_repository(_auth_settings(tmp_path, "file"))
        assert isinstance(repo, FilePlayerRepository)
        assert db is None

    async def test_sqlite_imports_players_file_on_first_start(self, tmp_path: Path):
        record = PlayerRecord(
            player_id="p1",
            handle="veteran",
            password_hash="simple$x",
            score=12,
            created_at=datetime(2024, 6, 1, tzinfo=UTC),
        )
        (tmp_path / "players.json").write_text(json.dumps([record.model_dump(mode="json")]))

        repo, db = build_player_repository(_auth_settings(tmp_path, "sqlite"))
        assert await repo.get_by_handle("veteran") == record
        db.close()


class TestCreateApp:
    def test_every_route_has_a_policy(self, tmp_path: Path):
        app = build_test_app(tmp_path)
        assert all(hasattr(route.endpoint, AUTH_POLICY_ATTR) for route in app.routes if isinstance(route, Route))

    def test_state_is_wired(self, tmp_path: Path):
        app = build_test_app(tmp_path)
        assert app.state.player_service is not None
        assert app.state.auth_settings.admin_token == ADMIN_TOKEN
        assert app.state.db is not None

    def test_lifespan_closes_database(self, tmp_path: Path):
        app = build_test_app(tmp_path)
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
        assert app.state.db._conn is None

    def test_lifespan_warms_up_service(self, tmp_path: Path, monkeypatch):
        warmed: list[PlayerService] = []

        async def _warm_up(service: PlayerService) -> None:
            warmed.append(service)

        monkeypatch.setattr(PlayerService, "warm_up", _warm_up)
        app = build_test_app(tmp_path)
        with TestClient(app):
            assert warmed == [app.state.player_service]

    def test_cors_preflight_for_configured_origin(self, tmp_path: Path):
        client = TestClient(build_test_app(tmp_path, cors_origins=["http://game.example"]))
        response = client.options(
            "/player",
            headers={"Origin": "http://game.example", "Access-Control-Request-Method": "PUT"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://game.example"
