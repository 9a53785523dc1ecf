"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-3-flash-preview"
    gemini_fallback_model: str | None = "gemini-flash-latest"
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.deepseek.com"
    openai_model_name: str = "deepseek-chat"
    provider_timeout_seconds: float = 30.0
    diary_timezone: str = "Asia/Shanghai"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
