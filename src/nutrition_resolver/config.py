"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = (
        "NutritionResolver/1.0 (https://github.com/nutrition-resolver)"
    )
    off_timeout_seconds: float = 10.0
    off_language: str = "en"
    off_barcode_requests_per_minute: int = 10
    off_search_requests_per_minute: int = 30
    rate_limit_window_seconds: float = 60.0
    local_search_cap: int = 30
    external_search_cap: int = 20
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
