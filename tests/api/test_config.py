"""Tests for configuration classes."""

import os
import pytest
from dataclasses import FrozenInstanceError
from unittest.mock import patch


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        """Test that default CORS origins are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            from config import CORSConfig

            config = CORSConfig()

            assert config.allowed_origins == ["http://localhost:8000"]

    def test_cors_parses_env_var(self):
        """Test that CORS origins are parsed from environment variable."""
        env_origins = "  http://example.com  ,http://localhost:3000,,"
        with patch.dict(os.environ, {"CORS_ORIGINS": env_origins}):
            from config import _parse_cors_origins

            origins = _parse_cors_origins()

            assert origins == ["http://example.com", "http://localhost:3000"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import RateLimitConfig

            config = RateLimitConfig()

            assert config.enabled is True
            assert config.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "False", "RATE_LIMIT_RPM": "5"}):
            from config import RateLimitConfig

            config = RateLimitConfig()

            assert config.enabled is False
            assert config.requests_per_minute == 5


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_from_env(self):
        """Test that secret key is read from environment."""
        with patch.dict(os.environ, {"SECRET_KEY": "my-super-secret-key-12345"}):
            from config import SecurityConfig

            assert SecurityConfig().secret_key == "my-super-secret-key-12345"

    def test_secret_key_generated_when_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import SecurityConfig

            assert len(SecurityConfig().secret_key) > 0


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_redis_url_without_password(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import RedisConfig

            assert RedisConfig().url == "redis://localhost:6379/0"

    def test_redis_url_from_env(self):
        with patch.dict(
            os.environ,
            {
                "REDIS_HOST": "redis.example.com",
                "REDIS_PORT": "6380",
                "REDIS_DB": "1",
                "REDIS_PASSWORD": "secret123",
            },
        ):
            from config import RedisConfig

            assert RedisConfig().url == "redis://:secret123@redis.example.com:6380/1"


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_dealer_stand_min_default(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import GameConfig

            assert GameConfig().dealer_stand_min == 17

    def test_dealer_stand_min_from_env(self):
        with patch.dict(os.environ, {"DEALER_STAND_MIN": "16"}):
            from config import GameConfig

            assert GameConfig().dealer_stand_min == 16

    def test_game_config_frozen(self):
        from config import GameConfig

        config = GameConfig()

        with pytest.raises(FrozenInstanceError):
            config.dealer_stand_min = 18


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import AppConfig

            config = AppConfig()

            assert config.debug is False
            assert config.host == "0.0.0.0"
            assert config.port == 8000
            assert config.log_level == "INFO"
            assert config.session_backend == "memory"
            assert config.session_ttl == 3600

    def test_app_config_from_env(self):
        with patch.dict(
            os.environ,
            {"DEBUG": "true", "LOG_LEVEL": "debug", "SESSION_BACKEND": "Redis"},
        ):
            from config import AppConfig

            config = AppConfig()

            assert config.debug is True
            assert config.log_level == "DEBUG"
            assert config.session_backend == "redis"

    def test_unknown_session_backend_falls_back_to_memory(self):
        with patch.dict(os.environ, {"SESSION_BACKEND": "postgres"}):
            from config import AppConfig

            assert AppConfig().session_backend == "memory"
