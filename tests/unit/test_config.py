"""
Tests for the configuration module.
"""

from unittest.mock import patch

import pytest


class TestSettings:
    """Tests for Settings class."""

    def test_defaults_boot_without_credentials(self):
        """Every value has a default; nothing is required."""
        from config.settings import Settings

        settings = Settings(_env_file=None, openai_api_key="", supabase_url="", supabase_service_key="")

        assert settings.host == "0.0.0.0"
        assert settings.port == 8080
        assert settings.ai_max_retries == 2
        assert settings.weather_cache_ttl_seconds == 600
        assert settings.topography_cache_ttl_seconds == 3600
        assert settings.ai_available is False
        assert settings.supabase_configured is False

    def test_environment_properties(self):
        """Test is_development / is_production."""
        from config.settings import Settings

        for env in ["development", "dev", "local"]:
            assert Settings(_env_file=None, environment=env).is_development is True
        for env in ["production", "prod"]:
            settings = Settings(_env_file=None, environment=env)
            assert settings.is_production is True
            assert settings.is_development is False

    def test_cors_origins_parsing(self):
        """CORS origins can be given as a comma-separated string."""
        from config.settings import Settings

        settings = Settings(_env_file=None, cors_origins="http://localhost:8081, https://app.example.com,")

        assert settings.cors_origins == ["http://localhost:8081", "https://app.example.com"]

    def test_ai_available_needs_key_and_flag(self):
        """AI is only used when enabled and a key is present."""
        from config.settings import Settings

        assert Settings(_env_file=None, openai_api_key="sk-x", ai_enabled=True).ai_available is True
        assert Settings(_env_file=None, openai_api_key="sk-x", ai_enabled=False).ai_available is False
        assert Settings(_env_file=None, openai_api_key="", ai_enabled=True).ai_available is False

    def test_supabase_configured(self):
        from config.settings import Settings

        settings = Settings(
            _env_file=None,
            supabase_url="https://test.supabase.co",
            supabase_service_key="test-key",
        )
        assert settings.supabase_configured is True

    def test_settings_for_testing(self):
        """Test get_settings_for_testing function."""
        from config.settings import get_settings_for_testing

        settings = get_settings_for_testing(stylist_model="gpt-test")

        assert settings.environment == "testing"
        assert settings.ai_available is False
        assert settings.ai_retry_delay_seconds == 0
        assert settings.advice_data_url == ""
        assert settings.stylist_model == "gpt-test"

    def test_env_override(self, monkeypatch):
        """Environment variables override defaults."""
        from config.settings import Settings

        monkeypatch.setenv("AI_MAX_RETRIES", "5")
        monkeypatch.setenv("ADVICE_DATA_URL", "https://cdn.example.com/advice.json")

        settings = Settings(_env_file=None)
        assert settings.ai_max_retries == 5
        assert settings.advice_data_url == "https://cdn.example.com/advice.json"


class TestConstants:
    """Tests for constants module."""

    def test_advice_scoring_weights(self):
        from config.constants import DEFAULT_ADVICE_SCORING

        assert DEFAULT_ADVICE_SCORING.GENDER == 10
        assert DEFAULT_ADVICE_SCORING.HEIGHT == 8
        assert DEFAULT_ADVICE_SCORING.WEIGHT == 15
        assert DEFAULT_ADVICE_SCORING.SKIN_TONE == 12
        assert DEFAULT_ADVICE_SCORING.STYLE == 5
        assert DEFAULT_ADVICE_SCORING.MIN_ATTRIBUTES == 5

    def test_scoring_config_is_frozen(self):
        from dataclasses import FrozenInstanceError
        from config.constants import DEFAULT_ADVICE_SCORING

        with pytest.raises(FrozenInstanceError):
            DEFAULT_ADVICE_SCORING.GENDER = 99

    def test_default_location(self):
        """Default coordinates point at Delhi."""
        from config.constants import COORDINATE_PRECISION, DEFAULT_LATITUDE, DEFAULT_LONGITUDE

        assert (DEFAULT_LATITUDE, DEFAULT_LONGITUDE) == (28.6139, 77.2090)
        assert COORDINATE_PRECISION == 4

    def test_cross_gender_markers(self):
        from config.constants import CROSS_GENDER_MARKERS

        assert "dress" in CROSS_GENDER_MARKERS["male"]
        assert "tie" in CROSS_GENDER_MARKERS["female"]


class TestDatabase:
    """Tests for database module."""

    def test_unconfigured_client_is_none(self):
        """get_supabase_client_optional returns None without credentials."""
        from config import database
        from config.settings import get_settings_for_testing

        database.get_supabase_client.cache_clear()
        with patch.object(database, "get_settings", return_value=get_settings_for_testing()):
            assert database.get_supabase_client_optional() is None
        database.get_supabase_client.cache_clear()

    def test_client_creation_failure(self):
        from config import database
        from config.settings import get_settings_for_testing

        settings = get_settings_for_testing(supabase_url="https://x.supabase.co", supabase_service_key="k")
        database.get_supabase_client.cache_clear()
        with patch.object(database, "get_settings", return_value=settings), \
                patch.object(database, "create_client", side_effect=ValueError("bad key")):
            with pytest.raises(database.SupabaseClientError):
                database.get_supabase_client()
            assert database.get_supabase_client_optional() is None
        database.get_supabase_client.cache_clear()

    @pytest.mark.supabase
    def test_supabase_client_singleton(self):
        """Test that get_supabase_client returns singleton."""
        from config.database import get_supabase_client

        assert get_supabase_client() is get_supabase_client()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
