"""Game client configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    model_config = {"env_prefix": "PLAYERBASE_"}

    api_base_url: str = Field(default="http://localhost:5000", min_length=1)
    timeout_seconds: float = Field(default=10.0, gt=0)
    mirror_path: str = Field(default="~/.playerbase/mirror.json", min_length=1)
