"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Stremio Groups", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")
    omdb_api_url: HttpUrl = Field(
        default="https://www.omdbapi.com", alias="OMDB_API_URL"
    )
    kitsu_api_url: HttpUrl = Field(
        default="https://kitsu.io/api/edge", alias="KITSU_API_URL"
    )
    http_timeout_seconds: float = Field(
        default=10.0, alias="HTTP_TIMEOUT", gt=0, le=120
    )
    http_connect_timeout_seconds: float = Field(
        default=5.0, alias="HTTP_CONNECT_TIMEOUT", gt=0, le=60
    )

    public_base_url: HttpUrl | None = Field(default=None, alias="PUBLIC_BASE_URL")
    group_id_length: int = Field(default=8, alias="GROUP_ID_LENGTH", ge=6, le=32)

    database_url: str = Field(
        default="sqlite+aiosqlite:///./stremio_groups.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        """Accept log levels in any case and reject unknown names."""

        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return level

    @field_validator("omdb_api_key", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def public_base(self) -> str | None:
        """Return the configured public base URL without a trailing slash."""

        if self.public_base_url is None:
            return None
        return str(self.public_base_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
