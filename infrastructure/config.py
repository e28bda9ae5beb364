"""Runtime configuration.

Relies on pydantic-settings so that environment variables (prefixed with ``HOTEL_``)
can override defaults.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Captures runtime configuration for the API"""

    secret_key: str = Field(
        default="your-secret-key-keep-it-secret",
        description="Key used to sign JWT access tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=30, ge=1)
    log_level: str = "INFO"
    default_currency: str = Field(default="USD", min_length=3, max_length=3)
    seed_demo_data: bool = Field(
        default=True, description="Load the demo hotel, room types and users on startup"
    )

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
