"""Route auth policies for the accounts server."""

from accounts.auth.policy import admin_only, player_credential, public_route, validate_route_auth_policy

__all__ = [
    "admin_only",
    "player_credential",
    "public_route",
    "validate_route_auth_policy",
]
