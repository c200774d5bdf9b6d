"""
Configuration and settings for the JA Makers backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SEVEN_DAYS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="*")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "database_url", "DATABASE_URL", "POSTGRES_URL", "POSTGRES_URL_NON_POOLING"
        ),
    )
    database_pool_size: int = Field(
        default=10, validation_alias=AliasChoices("database_pool_size", "PGPOOL_MAX")
    )

    # Convex deployment
    convex_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "use_in_memory_backends", "JAMAKERS_USE_IN_MEMORY_BACKENDS"
        ),
    )
    seed_demo_data: bool = Field(
        default=True,
        validation_alias=AliasChoices("seed_demo_data", "JAMAKERS_SEED_DEMO_DATA"),
    )
    enable_dev_login: bool = Field(
        default=True,
        validation_alias=AliasChoices("enable_dev_login", "JAMAKERS_ENABLE_DEV_LOGIN"),
    )

    # Sessions
    session_secret: str = Field(default="dev-session-secret")
    session_ttl_seconds: int = Field(default=SEVEN_DAYS)
    session_cookie_name: str = Field(default="jamakers.sid")
    session_cookie_secure: bool = Field(default=False)
    redis_url: Optional[str] = Field(default=None)
    redis_session_prefix: str = Field(default="jamakers:sess:")

    # Google sign-in
    google_client_id: Optional[str] = Field(default=None)
    google_client_secret: Optional[str] = Field(default=None)
    google_redirect_uri: Optional[str] = Field(default=None)

    # Object storage (local filesystem)
    public_object_search_paths: str = Field(default="public_objects")
    private_object_dir: str = Field(default="private_objects")

    # Assistant
    ai_provider: str = Field(default="ollama")
    ai_ollama_base_url: str = Field(default="http://localhost:11434")
    ai_ollama_model: str = Field(default="llama3.1")
    openrouter_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions"
    )
    openrouter_api_key: Optional[str] = Field(default=None)
    openrouter_model: str = Field(default="openai/gpt-4o-mini")
    openrouter_referer: str = Field(default="http://localhost:5000/")
    openrouter_x_title: str = Field(default="Jamakers")

    @property
    def google_login_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def public_search_paths(self) -> list[str]:
        return [
            path.strip()
            for path in self.public_object_search_paths.split(",")
            if path.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
