"""
Configuration and settings for the wellness backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Payment records (Supabase Postgres or any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)

    # Supabase auth
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)

    # Stripe, read by the checkout issuer on every request
    stripe_secret_key: Optional[str] = Field(default=None)
    default_origin: str = Field(default="http://localhost:8080")

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(default=None)

    # Voice assistant (ElevenLabs conversational agent)
    elevenlabs_api_key: Optional[str] = Field(default=None)
    elevenlabs_agent_id: str = Field(default="agent_1001kc3t20gxesr94xg3ec7yxy0y")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
