"""
Pytest Configuration and Shared Fixtures

Provides test settings, sample identities and activity, and factories
for activity records relative to "now".
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

# Set test environment before importing application modules
os.environ["SEATWATCH_ENVIRONMENT"] = "development"
os.environ["SEATWATCH_AWS_REGION"] = "us-west-2"
os.environ["SEATWATCH_SECRETS_ARN"] = "seatwatch/test"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from seatwatch.shared.config import Settings, get_settings  # noqa: E402
from seatwatch.shared.models import ActivityRecord, Identity  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- Time Fixtures ---


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def days_ago(now: datetime) -> Callable[[float], datetime]:
    """Datetime `n` days before the fixture's now."""

    def _days_ago(n: float) -> datetime:
        return now - timedelta(days=n)

    return _days_ago


# --- Settings Fixtures ---


@pytest.fixture
def settings() -> Settings:
    """Default thresholds (60 / 90 days), both sources, notifications on."""
    return Settings(
        notify_after_days=60,
        remove_after_days=90,
        enable_cursor=True,
        enable_github_copilot=True,
        enable_notifications=True,
        secrets_arn="seatwatch/test",
    )


@pytest.fixture
def secrets_payload() -> dict[str, str]:
    return {
        "CURSOR_API_KEY": "key_cursor_test",
        "GITHUB_TOKEN": "ghp_test",
        "GITHUB_ORG": "acme",
        "SLACK_BOT_TOKEN": "xoxb-test",
        "SLACK_USER_ID": "UADMIN",
    }


# --- Identity Fixtures ---


@pytest.fixture
def john() -> Identity:
    return Identity(name="John", email="john@x.com")


@pytest.fixture
def jane() -> Identity:
    return Identity(name="Jane", email="jane@x.com")


@pytest.fixture
def roster(john: Identity, jane: Identity) -> list[Identity]:
    return [john, jane]


@pytest.fixture
def active_on(days_ago) -> Callable[..., ActivityRecord]:
    """Factory for an activity record `n` days ago."""

    def _active_on(email: str, n: float, is_active: bool = True) -> ActivityRecord:
        return ActivityRecord(email=email, day=days_ago(n), is_active=is_active)

    return _active_on
