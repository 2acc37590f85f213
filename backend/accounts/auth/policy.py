"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit policy.

There are three policies:
- ``public``: no credential at all (registration, leaderboard, health).
- ``player_credential``: the handler passes the player's plaintext credential
  to PlayerService, which verifies it against the stored hash.
- ``admin``: the shared admin token, checked here before the handler runs.
"""

from __future__ import annotations

import functools
import hmac
import json
from typing import TYPE_CHECKING

from starlette.routing import Mount, Route

from accounts.views.responses import envelope

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    Endpoint = Callable[[Request], Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"

ADMIN_TOKEN_HEADERS = ("x-admin-token", "x-admin-password")
ADMIN_TOKEN_FIELDS = ("adminToken", "adminPassword")


def _mark(endpoint: Endpoint, policy: str) -> Endpoint:
    """Wrap so the marker lives on the wrapper, not on the shared original callable."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        return await endpoint(request)

    setattr(wrapper, AUTH_POLICY_ATTR, policy)
    return wrapper


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as explicitly public (no auth required)."""
    return _mark(endpoint, "public")


def player_credential(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as gated by the player's own credential, verified by PlayerService."""
    return _mark(endpoint, "player_credential")


async def _provided_admin_token(request: Request) -> str | None:
    """Find the admin token in headers, bearer auth, query string, or a JSON body."""
    for header in ADMIN_TOKEN_HEADERS:
        value = request.headers.get(header)
        if value:
            return value

    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()

    for field in ADMIN_TOKEN_FIELDS:
        value = request.query_params.get(field)
        if value:
            return value

    if request.method == "POST":
        try:
            body = await request.json()
        except (ValueError, json.JSONDecodeError):
            return None
        if isinstance(body, dict):
            for field in ADMIN_TOKEN_FIELDS:
                value = body.get(field)
                if isinstance(value, str) and value:
                    return value
    return None


def admin_only(endpoint: Endpoint) -> Endpoint:
    """Require the shared admin token.

    Returns 401 when no token is presented and 403 when it does not match.
    The comparison is constant-time.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        provided = await _provided_admin_token(request)
        if provided is None:
            return envelope(False, "Admin credential required", status_code=401)
        expected: str = request.app.state.auth_settings.admin_token
        if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            return envelope(False, "Invalid admin credential", status_code=403)
        return await endpoint(request)

    setattr(wrapper, AUTH_POLICY_ATTR, "admin")
    return wrapper


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Verify every Route has an auth policy marker. Mount routes are exempt.

    Raises RuntimeError listing all unclassified routes if any are found.
    """
    unclassified: list[str] = []
    for route in routes:
        if isinstance(route, Mount):
            continue
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR):
            name = route.name or getattr(route.endpoint, "__name__", "unknown")
            unclassified.append(f"{route.path} ({name})")

    if unclassified:
        details = ", ".join(unclassified)
        msg = f"Unclassified routes missing auth policy: {details}"
        raise RuntimeError(msg)
