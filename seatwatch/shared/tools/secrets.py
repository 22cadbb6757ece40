"""
Secrets Tools

Loads API credentials from AWS Secrets Manager (Lambda) or from the
process environment (local server). Every failure is a ConfigError so the
run aborts before touching any vendor or chat API.
"""

import json
import os

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import ConfigError

log = structlog.get_logger()

SECRET_KEYS = (
    "CURSOR_API_KEY",
    "GITHUB_TOKEN",
    "GITHUB_ORG",
    "SLACK_BOT_TOKEN",
    "SLACK_USER_ID",
)


class Secrets(BaseModel):
    """
    API credentials.

    Keys are stored upper-case in the secret JSON; every key is optional
    here and require_for() decides what the current settings need.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    cursor_api_key: str | None = Field(default=None, alias="CURSOR_API_KEY", min_length=1)
    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN", min_length=1)
    github_org: str | None = Field(default=None, alias="GITHUB_ORG", min_length=1)
    slack_bot_token: str | None = Field(default=None, alias="SLACK_BOT_TOKEN", min_length=1)
    slack_user_id: str | None = Field(
        default=None,
        alias="SLACK_USER_ID",
        min_length=1,
        description="Slack user or channel receiving the removal report",
    )

    def require_for(self, settings: Settings) -> "Secrets":
        """
        Check that every enabled feature has its credentials.

        Raises:
            ConfigError: Listing all missing keys
        """
        missing = []
        if settings.enable_cursor and not self.cursor_api_key:
            missing.append("CURSOR_API_KEY")
        if settings.enable_github_copilot:
            if not self.github_token:
                missing.append("GITHUB_TOKEN")
            if not self.github_org:
                missing.append("GITHUB_ORG")
        if settings.enable_notifications:
            if not self.slack_bot_token:
                missing.append("SLACK_BOT_TOKEN")
            if not self.slack_user_id:
                missing.append("SLACK_USER_ID")

        if missing:
            raise ConfigError("Missing required secrets", missing=missing)
        return self


def _parse_secrets(raw: dict) -> Secrets:
    try:
        return Secrets.model_validate(raw)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise ConfigError(f"Invalid secrets configuration: {fields}") from e


def _get_client(settings: Settings):
    """Get Secrets Manager client."""
    return boto3.client("secretsmanager", **settings.secrets_config)


def fetch_secrets(settings: Settings) -> Secrets:
    """
    Fetch and validate credentials from AWS Secrets Manager.

    Args:
        settings: Settings carrying secrets_arn and the enabled features

    Returns:
        Validated Secrets

    Raises:
        ConfigError: If the secret is unset, unreadable, or incomplete
    """
    if not settings.secrets_arn:
        raise ConfigError("Missing SEATWATCH_SECRETS_ARN environment variable")

    client = _get_client(settings)
    try:
        response = client.get_secret_value(SecretId=settings.secrets_arn)
    except ClientError as e:
        log.error(
            "secrets_fetch_failed",
            secret_id=settings.secrets_arn,
            error_code=e.response["Error"]["Code"],
            error=str(e),
        )
        raise ConfigError(
            "Failed to fetch secrets from AWS Secrets Manager",
            secret_id=settings.secrets_arn,
            error_code=e.response["Error"]["Code"],
        ) from e
    except BotoCoreError as e:
        log.error("secrets_fetch_failed", secret_id=settings.secrets_arn, error=str(e))
        raise ConfigError(
            "Failed to fetch secrets from AWS Secrets Manager",
            secret_id=settings.secrets_arn,
        ) from e

    secret_string = response.get("SecretString")
    if not secret_string:
        raise ConfigError("SecretString is empty. Ensure the secret is populated correctly.")

    try:
        raw = json.loads(secret_string)
    except json.JSONDecodeError as e:
        raise ConfigError("Failed to parse secrets JSON from AWS Secrets Manager") from e
    if not isinstance(raw, dict):
        raise ConfigError("Secrets JSON must be an object")

    secrets = _parse_secrets(raw).require_for(settings)
    log.info("secrets_fetched", secret_id=settings.secrets_arn)
    return secrets


def load_local_secrets(settings: Settings) -> Secrets:
    """Load credentials from environment variables for local development."""
    raw = {key: os.environ[key] for key in SECRET_KEYS if os.environ.get(key)}
    return _parse_secrets(raw).require_for(settings)
