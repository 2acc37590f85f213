"""Builders shared by accounts unit and integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from accounts.server.app import create_app
from accounts.server.settings import AccountsServerSettings
from shared.auth.settings import AuthSettings

if TYPE_CHECKING:
    from pathlib import Path

    from starlette.applications import Starlette
    from starlette.testclient import TestClient

ADMIN_TOKEN = "test-admin-token"


def build_test_app(tmp_path: Path, *, storage_backend: str = "sqlite", **server_overrides) -> Starlette:
    """Create the accounts app with fast hashing and stores under tmp_path."""
    auth_settings = AuthSettings(
        admin_token=ADMIN_TOKEN,
        password_hasher="simple",
        storage_backend=storage_backend,
        database_path=str(tmp_path / "storage.db"),
        players_file=str(tmp_path / "players.json"),
    )
    return create_app(settings=AccountsServerSettings(**server_overrides), auth_settings=auth_settings)


def register(client: TestClient, handle: str = "alice", credential: str = "pw1", **extra) -> dict:
    """Register through the HTTP API and return the player view."""
    response = client.post("/player/register", json={"handle": handle, "credential": credential, **extra})
    assert response.status_code == 201, response.text
    return response.json()["data"]
