"""
Configuration Management

Pydantic-settings based configuration for the inactive license checker.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Literal

import structlog
from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from seatwatch.shared.exceptions import ConfigError

log = structlog.get_logger()


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with SEATWATCH_ and are case-insensitive.
    Example: SEATWATCH_NOTIFY_AFTER_DAYS=45
    """

    model_config = SettingsConfigDict(
        env_prefix="SEATWATCH_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Inactivity thresholds
    notify_after_days: int = Field(
        default=60,
        gt=0,
        description="Days without activity before the user gets a warning DM",
    )
    remove_after_days: int = Field(
        default=90,
        gt=0,
        description="Days without activity before the user is reported for removal",
    )

    # Feature toggles
    enable_cursor: bool = Field(
        default=True,
        description="Check Cursor team members",
    )
    enable_github_copilot: bool = Field(
        default=True,
        description="Check GitHub Copilot seat assignments",
    )
    enable_notifications: bool = Field(
        default=True,
        description="Master switch for Slack DMs and the admin report",
    )

    # Secrets Manager Configuration
    secrets_arn: str | None = Field(
        default=None,
        description="Name or ARN of the Secrets Manager secret holding API credentials",
    )
    secrets_endpoint_url: str | None = Field(
        default=None,
        description="Secrets Manager endpoint URL (for local development)",
    )

    # Vendor API Configuration
    cursor_api_base_url: str = Field(
        default="https://api.cursor.com",
        description="Cursor Admin API base URL",
    )
    github_api_base_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    slack_api_base_url: str = Field(
        default="https://slack.com/api",
        description="Slack Web API base URL",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single outbound HTTP request",
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-west-2",
        description="AWS region",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "Settings":
        # Convention only; an inverted pair still runs, with every notify
        # candidate also landing in the removal tier.
        if self.remove_after_days <= self.notify_after_days:
            log.warning(
                "remove_threshold_not_after_notify_threshold",
                notify_after_days=self.notify_after_days,
                remove_after_days=self.remove_after_days,
            )
        return self

    @property
    def enabled_sources(self) -> list[str]:
        """Names of the usage sources switched on."""
        sources = []
        if self.enable_cursor:
            sources.append("cursor")
        if self.enable_github_copilot:
            sources.append("github-copilot")
        return sources

    @property
    def secrets_config(self) -> dict:
        """Secrets Manager client configuration."""
        config = {"region_name": self.aws_region}
        if self.secrets_endpoint_url:
            config["endpoint_url"] = self.secrets_endpoint_url
        return config


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, failing fast on invalid values.

    Args:
        **overrides: Explicit field values taking precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigError: If any value fails validation
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) or "settings"
            for err in e.errors()
        )
        raise ConfigError(
            f"Invalid configuration: {fields}",
            errors=[err["msg"] for err in e.errors()],
        ) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Call get_settings.cache_clear() in tests after changing the environment.
    """
    return load_settings()
