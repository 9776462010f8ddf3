"""Application configuration for the ChatKit proxy API."""
from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    enable_debug_logs: bool = Field(default=False)
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    openai_api_key: str = Field(default="")
    openai_api_base: str = Field(default="https://api.openai.com")
    chatkit_api_base: str = Field(default="")
    chatkit_workflow_id: str = Field(default="")
    chatkit_metadata: str = Field(default="", description="Fallback session metadata as a JSON object string")

    realtime_model: str = Field(default="gpt-4o-realtime-preview-2024-12-17")
    realtime_voice: str = Field(default="verse")

    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-2.0-flash")
    gemini_model_fallbacks: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "gemini-2.0-flash-lite",
        "gemini-1.5-flash-latest",
    ])

    upstream_timeout_seconds: float = Field(default=15.0, gt=0)

    @field_validator("gemini_model_fallbacks", "cors_allow_origins", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Allow comma-separated env values for list settings."""

        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            parts = [item.strip() for item in value.split(",") if item.strip()]
            return parts
        return value

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def debug_logging_enabled(self) -> bool:
        """Verbose request tracing is on outside production or when forced."""

        return self.enable_debug_logs or not self.is_production

    @property
    def resolved_chatkit_api_base(self) -> str:
        return (self.chatkit_api_base or self.openai_api_base).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
