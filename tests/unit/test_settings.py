"""
Unit tests for application settings.
"""

import httpx
import pytest
from pydantic import ValidationError

from github_utils.config.settings import AppSettings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the host environment out of settings under test."""
    for name in (
        "GITHUB_TOKEN",
        "GITHUB_WEBHOOK_SECRET",
        "GITHUB_API_BASE_URL",
        "GITHUB_API_VERSION",
        "HTTP_TIMEOUT_SECONDS",
        "LOG_LEVEL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _settings(**kwargs) -> AppSettings:
    return AppSettings(_env_file=None, **kwargs)


class TestDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        settings = _settings()
        assert settings.github_api_base_url == "https://api.github.com/repos/"
        assert settings.github_api_version == "2022-11-28"
        assert settings.log_level == "INFO"
        assert settings.environment == "development"
        assert settings.has_github_token is False
        assert settings.has_webhook_secret is False

    def test_repos_base_url_is_parsed(self):
        url = _settings().repos_base_url
        assert isinstance(url, httpx.URL)
        assert url.host == "api.github.com"
        assert url.path == "/repos/"

    def test_loaded_from_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_API_BASE_URL", "http://localhost:9000/repos")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = _settings()
        assert settings.github_api_base_url == "http://localhost:9000/repos/"
        assert settings.log_level == "DEBUG"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestBaseUrlValidation:
    """An unusable base URL must fail at startup."""

    @pytest.mark.parametrize(
        "value",
        [
            "api.github.com/repos/",
            "ftp://api.github.com/repos/",
            "https://api.github.com/repos/?page=1",
            "not a url",
        ],
    )
    def test_invalid_base_url(self, value):
        with pytest.raises(ValidationError):
            _settings(github_api_base_url=value)

    def test_trailing_slash_added(self):
        settings = _settings(github_api_base_url="https://ghe.example.com/api/v3/repos")
        assert settings.github_api_base_url == "https://ghe.example.com/api/v3/repos/"


class TestValidators:
    """Tests for the remaining field validators."""

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            _settings(log_level="LOUD")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError, match="Invalid environment"):
            _settings(environment="qa")

    def test_environment_lowercased(self):
        assert _settings(environment="PRODUCTION").is_production is True

    def test_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            _settings(http_timeout_seconds=0)


class TestStartupValidation:
    """Tests for validate_for_startup."""

    def test_development_warns(self):
        warnings = _settings().validate_for_startup()
        assert len(warnings) == 2

    def test_production_requires_secrets(self):
        settings = _settings(environment="production")
        with pytest.raises(ValueError, match="GITHUB_WEBHOOK_SECRET is required"):
            settings.validate_for_startup()

    def test_placeholder_values_not_configured(self):
        settings = _settings(
            github_token="ghp_your_github_personal_access_token_here",
            github_webhook_secret="your_webhook_secret_here",
        )
        assert settings.has_github_token is False
        assert settings.has_webhook_secret is False

    def test_fully_configured(self):
        settings = _settings(
            environment="production",
            github_token="ghp_" + "a" * 36,
            github_webhook_secret="s3cret",
        )
        assert settings.validate_for_startup() == []

    def test_summary_does_not_log_secrets(self, capsys):
        from github_utils.utils.logging import setup_logging

        setup_logging(log_level="INFO", environment="production")
        settings = _settings(github_token="ghp_" + "a" * 36, github_webhook_secret="s3cret-value")
        settings.log_configuration_summary()

        output = capsys.readouterr().out
        assert "s3cret-value" not in output
        assert "ghp_" not in output
