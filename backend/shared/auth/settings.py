"""Auth and storage settings for the player record service."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from shared.auth.password import DEFAULT_BCRYPT_ROUNDS


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_", "populate_by_name": True}

    # Shared secret for the admin listing -- required, no default.
    # Distinct from every player credential; the application fails to start if unset.
    admin_token: str = Field(min_length=1)

    # "simple" is an unsalted fast hash for tests and local experiments only
    password_hasher: Literal["bcrypt", "simple"] = "bcrypt"
    bcrypt_rounds: int = Field(default=DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)

    # "file" is the single-process development fallback
    storage_backend: Literal["sqlite", "file"] = "sqlite"

    # SQLite database file path
    database_path: str = "backend/storage.db"

    # Flat-file collection path (file backend, and import source for sqlite)
    players_file: str = Field(default="backend/data/players.json", validation_alias="AUTH_PLAYERS_FILE")
