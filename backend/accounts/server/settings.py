"""Accounts server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from accounts.service import DEFAULT_LEADERBOARD_LIMIT, MAX_LEADERBOARD_LIMIT
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class AccountsServerSettings(BaseSettings):
    model_config = {"env_prefix": "ACCOUNTS_"}

    log_dir: str = Field(default="backend/logs/accounts", min_length=1)
    cors_origins: list[str] = []
    leaderboard_default_limit: int = Field(default=DEFAULT_LEADERBOARD_LIMIT, ge=1)
    leaderboard_max_limit: int = Field(default=MAX_LEADERBOARD_LIMIT, ge=1)
    max_body_bytes: int = Field(default=16384, ge=256)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
