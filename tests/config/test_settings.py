"""Tests for settings and logging configuration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from edu_media.config.logging_config import LoggingConfig, get_log_level_from_verbosity
from edu_media.config.settings import EduMediaSettings


class TestEduMediaSettings:
    """Test environment-driven settings."""

    def test_reads_prefixed_environment(self, monkeypatch):
        """Test EDU_MEDIA_ variables override defaults."""
        monkeypatch.setenv("EDU_MEDIA_ORGANIZATION_NAME", "Hill School")
        monkeypatch.setenv("EDU_MEDIA_INVITE_CODE_LENGTH", "10")
        monkeypatch.setenv("EDU_MEDIA_ENVIRONMENT", "Production")

        settings = EduMediaSettings(_env_file=None)

        assert settings.organization_name == "Hill School"
        assert settings.invite_code_length == 10
        assert settings.is_production

    def test_rejects_unknown_environment(self):
        """Test only known environments are accepted."""
        with pytest.raises(PydanticValidationError):
            EduMediaSettings(_env_file=None, environment="moon")

    def test_rejects_degenerate_charset(self):
        """Test code charsets need two distinct characters."""
        with pytest.raises(PydanticValidationError):
            EduMediaSettings(_env_file=None, invite_code_charset="AAAA")

    def test_share_tokens_have_a_minimum_length(self):
        """Test share tokens cannot be configured shorter than 16 characters."""
        with pytest.raises(PydanticValidationError):
            EduMediaSettings(_env_file=None, share_token_length=8)


class TestLoggingConfig:
    """Test dictConfig generation."""

    def test_verbosity_mapping(self):
        """Test verbosity names map to levels with WARNING as fallback."""
        assert get_log_level_from_verbosity("quiet") == "ERROR"
        assert get_log_level_from_verbosity("VERBOSE") == "INFO"
        assert get_log_level_from_verbosity("chatty") == "WARNING"

    def test_explicit_level_wins(self, monkeypatch):
        """Test LOG_LEVEL overrides LOG_VERBOSITY."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_VERBOSITY", "QUIET")

        config = LoggingConfig.build()

        assert config["root"]["level"] == "DEBUG"
        resolver_logger = config["loggers"]["edu_media.features.access.services.access_resolver"]
        assert resolver_logger["level"] == "DEBUG"

    def test_quiet_modules(self, monkeypatch):
        """Test noisy modules are held at WARNING and do not propagate."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_VERBOSITY", "VERBOSE")
        monkeypatch.setenv("LOG_FORMAT", "json")

        config = LoggingConfig.build()

        assert config["root"]["level"] == "INFO"
        assert config["formatters"]["default"]["format"].startswith('{"time"')
        store_logger = config["loggers"]["edu_media.infrastructure.document_store"]
        assert store_logger == {"level": "WARNING", "handlers": ["console"], "propagate": False}
        assert config["loggers"]["asyncpg"]["level"] == "ERROR"
