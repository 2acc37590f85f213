"""Integration tests for the admin player listing."""

from __future__ import annotations

from starlette.testclient import TestClient

from accounts.tests.helpers import ADMIN_TOKEN, register


class TestAdminListing:
    def test_lists_every_player_in_registration_order(self, client: TestClient):
        register(client, "zed", "pw")
        register(client, "amy", "pw")

        response = client.get("/players", headers={"X-Admin-Token": ADMIN_TOKEN})
        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "Players retrieved"
        assert [entry["handle"] for entry in body["data"]] == ["zed", "amy"]
        assert "password_hash" not in response.text
        assert "email" not in body["data"][0]

    def test_post_variant_with_body_token(self, client: TestClient):
        register(client)
        response = client.post("/players/get", json={"adminToken": ADMIN_TOKEN})
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_missing_token_is_401(self, client: TestClient):
        assert client.get("/players").status_code == 401

    def test_wrong_token_is_403(self, client: TestClient):
        response = client.get("/players", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 403

    def test_player_credential_is_not_an_admin_token(self, client: TestClient):
        register(client, credential="pw1")
        response = client.get("/players", headers={"X-Admin-Token": "pw1"})
        assert response.status_code == 403
