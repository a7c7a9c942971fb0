"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every value has a default so the service boots without any
    credentials; AI calls and the Supabase profile store simply
    degrade to their fallbacks when keys are missing.

    Commonly set environment variables:
        - OPENAI_API_KEY: key for outfit generation and photo analysis
        - SUPABASE_URL / SUPABASE_SERVICE_KEY: profile store
        - ADVICE_DATA_URL: location of the static advice dataset
        - ENVIRONMENT: Environment name (development, staging, production)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    cors_origins: List[str] = Field(
        default=[
            "http://localhost:8081",
            "http://localhost:19006",
            "http://127.0.0.1:8081",
        ],
        description="Allowed CORS origins (Expo dev server and web build)"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Supabase (profile store)
    # ==========================================================================
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service role key")
    profiles_table: str = Field(default="profiles", description="Table holding user body profiles")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    # ==========================================================================
    # OpenAI (outfit generation + photo analysis)
    # ==========================================================================
    openai_api_key: str = Field(default="", description="OpenAI API key")
    stylist_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for outfit generation and twinning text"
    )
    vision_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for person/venue photo analysis"
    )
    ai_enabled: bool = Field(
        default=True,
        description="Enable AI calls (curated fallbacks are served when disabled)"
    )
    ai_request_timeout_seconds: float = Field(
        default=45.0,
        description="Timeout for a single AI provider call (seconds)"
    )
    ai_max_retries: int = Field(
        default=2,
        description="Retries after a 'service busy' answer"
    )
    ai_retry_delay_seconds: float = Field(
        default=2.0,
        description="Fixed delay between busy retries (seconds)"
    )
    ai_rate_limit_calls: int = Field(
        default=15,
        description="Max AI calls per rate-limit window"
    )
    ai_rate_limit_window_seconds: float = Field(
        default=60.0,
        description="Rate-limit sliding window (seconds)"
    )

    @property
    def ai_available(self) -> bool:
        return self.ai_enabled and bool(self.openai_api_key)

    # ==========================================================================
    # Weather / Topography Context
    # ==========================================================================
    weather_api_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Open-Meteo forecast endpoint"
    )
    geocode_api_url: str = Field(
        default="https://api.bigdatacloud.net/data/reverse-geocode-client",
        description="Reverse geocoding endpoint"
    )
    context_request_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for weather and geocoding requests (seconds)"
    )
    weather_cache_ttl_seconds: int = Field(
        default=600,
        description="Weather cache TTL per coordinate (10 minutes)"
    )
    topography_cache_ttl_seconds: int = Field(
        default=3600,
        description="Topography cache TTL per coordinate (1 hour)"
    )
    context_cache_max_entries: int = Field(
        default=512,
        description="Max coordinates held by each context cache"
    )

    # ==========================================================================
    # Advice Dataset
    # ==========================================================================
    advice_data_url: str = Field(
        default="",
        description="URL of the static advice JSON array"
    )
    advice_request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the advice dataset download (seconds)"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance
    """
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.
    AI calls are disabled unless a test opts back in.
    """
    test_defaults = {
        "environment": "testing",
        "debug": True,
        "openai_api_key": "",
        "ai_enabled": False,
        "ai_retry_delay_seconds": 0.0,
        "supabase_url": "",
        "supabase_service_key": "",
        "advice_data_url": "",
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
