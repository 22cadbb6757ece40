"""
Usage Models

Pydantic models for licensed identities and their activity, plus the
per-run classification containers. Nothing here is persisted; every run
rebuilds these from vendor responses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_email(email: str) -> str:
    """Canonical form used as the identity key."""
    return email.strip().lower()


class Tier(str, Enum):
    """Inactivity classification outcome."""

    ACTIVE = "active"
    NOTIFY = "notify"
    REMOVE = "remove"


class Identity(BaseModel):
    """A licensed user, keyed by normalized email."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name")
    email: str = Field(..., min_length=1, description="Normalized email address")

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_email(v)


class ActivityRecord(BaseModel):
    """One observation of whether an identity was active on a given day."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(..., min_length=1, description="Normalized email address")
    day: datetime = Field(..., description="Day the observation covers (UTC)")
    is_active: bool = Field(..., description="Whether the identity used the product that day")

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("day")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class NotificationOutcome(BaseModel):
    """Result of resolving and/or messaging one identity."""

    email: str
    handle: str | None = None
    delivered: bool = False
    error: str | None = None


@dataclass
class ClassificationResult:
    """
    Inactivity tiers for one usage source.

    No email appears in both to_notify and to_remove.
    """

    source: str
    to_notify: list[Identity] = field(default_factory=list)
    to_remove: list[Identity] = field(default_factory=list)
    roster_size: int = 0

    def tier_of(self, email: str) -> Tier:
        """Tier assigned to an email (ACTIVE when not flagged)."""
        key = normalize_email(email)
        if any(identity.email == key for identity in self.to_remove):
            return Tier.REMOVE
        if any(identity.email == key for identity in self.to_notify):
            return Tier.NOTIFY
        return Tier.ACTIVE

    @property
    def is_empty(self) -> bool:
        return not self.to_notify and not self.to_remove


@dataclass
class MergedResult:
    """Tiers after collapsing identities reported by several sources."""

    to_notify: list[Identity] = field(default_factory=list)
    to_remove: list[Identity] = field(default_factory=list)
    notify_services: dict[str, list[str]] = field(default_factory=dict)
    remove_services: dict[str, list[str]] = field(default_factory=dict)

    def services_for(self, email: str, tier: Tier) -> list[str]:
        """Sources that put this email in the given tier, in first-seen order."""
        services = self.remove_services if tier == Tier.REMOVE else self.notify_services
        return services.get(normalize_email(email), [])
