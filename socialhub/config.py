"""
Runtime configuration helpers for the FastAPI application.

Loads DATABASE_URL, the managed auth endpoint and object storage settings
from the environment, falling back to the .env file in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required; no default
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="SocialHub", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")

    # Managed auth provider (GoTrue compatible)
    auth_url: str = Field(default="http://localhost:9999", alias="AUTH_URL")
    auth_anon_key: str | None = Field(default=None, alias="AUTH_ANON_KEY")
    auth_timeout: float = Field(default=10.0, alias="AUTH_TIMEOUT")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str = Field(default="authenticated", alias="JWT_AUDIENCE")

    # S3 compatible object storage
    storage_endpoint: str | None = Field(default=None, alias="STORAGE_ENDPOINT")
    storage_region: str = Field(default="us-east-1", alias="STORAGE_REGION")
    storage_public_url: str | None = Field(default=None, alias="STORAGE_PUBLIC_URL")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    max_avatar_bytes: int = Field(default=2 * 1024 * 1024, alias="MAX_AVATAR_BYTES")

    story_ttl_hours: int = Field(default=24, alias="STORY_TTL_HOURS")
    disable_cleanup: bool = Field(default=False, alias="DISABLE_CLEANUP")
    cleanup_interval_hours: int = Field(default=24, alias="CLEANUP_INTERVAL_HOURS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
