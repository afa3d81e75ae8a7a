"""Client configuration managed via environment variables."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SATURWAY_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_url: str = "https://saturway.com/api"
    api_timeout_s: float = 30.0
    token_path: Path = Path("~/.saturway/session.json")


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
