"""Credential codec and auth/storage settings for the player record service."""

from shared.auth.password import BcryptHasher, PasswordHasher, SimpleHasher, get_hasher
from shared.auth.settings import AuthSettings

__all__ = [
    "AuthSettings",
    "BcryptHasher",
    "PasswordHasher",
    "SimpleHasher",
    "get_hasher",
]
