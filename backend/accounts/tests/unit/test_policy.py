"""Tests for auth policy helpers and route validation."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.testclient import TestClient

from accounts.auth.policy import (
    AUTH_POLICY_ATTR,
    admin_only,
    player_credential,
    public_route,
    validate_route_auth_policy,
)
from shared.auth.settings import AuthSettings

ADMIN_TOKEN = "s3cret-admin"


async def _ok(request: Request) -> JSONResponse:
    return JSONResponse({"ok": True})


def _admin_app() -> Starlette:
    app = Starlette(
        routes=[
            Route("/admin", admin_only(_ok), methods=["GET"]),
            Route("/admin", admin_only(_ok), methods=["POST"], name="admin_post"),
        ],
    )
    app.state.auth_settings = AuthSettings(admin_token=ADMIN_TOKEN)
    return app


class TestMarkers:
    def test_public_route_marks_wrapper_only(self):
        wrapped = public_route(_ok)
        assert getattr(wrapped, AUTH_POLICY_ATTR) == "public"
        assert not hasattr(_ok, AUTH_POLICY_ATTR)

    def test_player_credential_marker(self):
        assert getattr(player_credential(_ok), AUTH_POLICY_ATTR) == "player_credential"

    def test_admin_marker(self):
        assert getattr(admin_only(_ok), AUTH_POLICY_ATTR) == "admin"

    def test_wrapper_keeps_name(self):
        assert public_route(_ok).__name__ == "_ok"


class TestValidateRouteAuthPolicy:
    def test_accepts_marked_routes(self):
        validate_route_auth_policy(
            [
                Route("/a", public_route(_ok)),
                Route("/b", player_credential(_ok)),
                Route("/c", admin_only(_ok)),
            ],
        )

    def test_mounts_are_exempt(self):
        validate_route_auth_policy([Mount("/static", app=Starlette())])

    def test_lists_every_unmarked_route(self):
        routes = [Route("/open", _ok, name="open"), Route("/fine", public_route(_ok)), Route("/also", _ok)]
        with pytest.raises(RuntimeError, match="Unclassified routes") as exc_info:
            validate_route_auth_policy(routes)
        assert "/open (open)" in str(exc_info.value)
        assert "/also" in str(exc_info.value)
        assert "/fine" not in str(exc_info.value)


class TestAdminOnly:
    @pytest.fixture
    def client(self) -> TestClient:
        return TestClient(_admin_app())

    def test_missing_token_is_401(self, client: TestClient):
        response = client.get("/admin")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Admin credential required"}

    def test_wrong_token_is_403(self, client: TestClient):
        response = client.get("/admin", headers={"X-Admin-Token": "guess"})
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid admin credential"

    @pytest.mark.parametrize(
        "headers",
        [
            {"X-Admin-Token": ADMIN_TOKEN},
            {"X-Admin-Password": ADMIN_TOKEN},
            {"Authorization": f"Bearer {ADMIN_TOKEN}"},
        ],
    )
    def test_accepts_token_in_headers(self, client: TestClient, headers):
        response = client.get("/admin", headers=headers)
        assert response.status_code == 200

    def test_accepts_token_in_query(self, client: TestClient):
        assert client.get("/admin", params={"adminToken": ADMIN_TOKEN}).status_code == 200

    def test_accepts_token_in_post_body(self, client: TestClient):
        assert client.post("/admin", json={"adminToken": ADMIN_TOKEN}).status_code == 200
        assert client.post("/admin", json={"adminPassword": ADMIN_TOKEN}).status_code == 200

    def test_malformed_post_body_counts_as_missing(self, client: TestClient):
        response = client.post("/admin", content=b"{nope", headers={"content-type": "application/json"})
        assert response.status_code == 401

    def test_non_bearer_authorization_is_ignored(self, client: TestClient):
        response = client.get("/admin", headers={"Authorization": f"Basic {ADMIN_TOKEN}"})
        assert response.status_code == 401
