from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Listing Entry API"
    env: str = "dev"
    admin_token: str = "dev-admin-token"
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://127.0.0.1:3000"])

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LISTING_API_")


@lru_cache
def get_settings() -> Settings:
    return Settings()
