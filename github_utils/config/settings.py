"""
Configuration management for github-utils.

This module provides environment-based configuration using Pydantic Settings.
Supports loading from .env files and environment variables, and validates
the GitHub API base URL once at startup: an unusable base URL fails
settings construction, so no request path ever runs without it.
"""

from functools import lru_cache
from typing import Optional

import httpx
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_utils.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REPOS_BASE_URL = "https://api.github.com/repos/"
DEFAULT_API_VERSION = "2022-11-28"


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or a .env file.
    Priority: Environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # ======================
    # GitHub Configuration
    # ======================
    github_token: Optional[str] = None
    """GitHub token used to download repository tarballs."""
    github_webhook_secret: Optional[str] = None
    """Secret for validating GitHub webhook signatures."""
    github_api_base_url: str = DEFAULT_REPOS_BASE_URL
    """Base URL of the repositories API; tarball paths are appended to it."""
    github_api_version: str = DEFAULT_API_VERSION
    """Value sent in the X-GitHub-Api-Version header."""

    # ======================
    # HTTP Configuration
    # ======================
    http_timeout_seconds: float = 30.0
    """Timeout applied by the HTTP client built from these settings."""

    # ======================
    # Application Settings
    # ======================
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""
    environment: str = "development"
    """Application environment (development, staging, production)."""

    # ======================
    # Validators
    # ======================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        return upper_v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production"}
        lower_v = v.lower()
        if lower_v not in valid_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(sorted(valid_envs))}"
            )
        return lower_v

    @field_validator("github_api_base_url")
    @classmethod
    def validate_github_api_base_url(cls, v: str) -> str:
        """Parse the repos base URL; it must be an absolute http(s) URL."""
        try:
            url = httpx.URL(v)
        except (httpx.InvalidURL, TypeError) as e:
            raise ValueError(f"Invalid github_api_base_url '{v}': {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(
                f"github_api_base_url must be an absolute http(s) URL, got '{v}'"
            )
        if url.query or url.fragment:
            raise ValueError(
                f"github_api_base_url must not carry a query or fragment, got '{v}'"
            )
        if not v.endswith("/"):
            v = f"{v}/"
        return v

    @field_validator("http_timeout_seconds")
    @classmethod
    def validate_http_timeout_seconds(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"http_timeout_seconds must be positive, got {v}")
        return v

    @property
    def repos_base_url(self) -> httpx.URL:
        """The parsed repos base URL."""
        return httpx.URL(self.github_api_base_url)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def has_github_token(self) -> bool:
        """Check if GitHub token is configured."""
        return bool(self.github_token and self.github_token != "ghp_your_github_personal_access_token_here")

    @property
    def has_webhook_secret(self) -> bool:
        """Check if webhook secret is configured."""
        return bool(self.github_webhook_secret and self.github_webhook_secret != "your_webhook_secret_here")

    def validate_for_startup(self) -> list[str]:
        """
        Validate configuration for startup and return warnings.

        Returns a list of warning messages for missing optional configurations.
        Raises ValueError for critical missing configurations in production.
        """
        warnings = []
        errors = []

        if not self.has_github_token:
            if self.is_production:
                errors.append("GITHUB_TOKEN is required in production")
            else:
                warnings.append(
                    "GITHUB_TOKEN not configured - tarball downloads will need an explicit token"
                )

        if not self.has_webhook_secret:
            if self.is_production:
                errors.append("GITHUB_WEBHOOK_SECRET is required in production")
            else:
                warnings.append(
                    "GITHUB_WEBHOOK_SECRET not configured - webhook deliveries will be rejected"
                )

        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

        return warnings

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration (without secrets)."""
        logger.info(
            "configuration_summary",
            environment=self.environment,
            log_level=self.log_level,
            github_api_base_url=self.github_api_base_url,
            github_api_version=self.github_api_version,
            http_timeout_seconds=self.http_timeout_seconds,
            github_token_configured=self.has_github_token,
            webhook_secret_configured=self.has_webhook_secret,
        )


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get the global application settings (cached).

    Returns:
        AppSettings: The configured application settings.
    """
    return AppSettings()
