"""
Cursor Usage Source

Reads team members and daily usage from the Cursor Admin API.

Endpoints:
- GET  /teams/members              -> roster (only role == "member")
- POST /teams/daily-usage-data     -> per-user, per-day usage rows

The API key is sent as the basic-auth username with an empty password.
"""

from datetime import datetime, timezone

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import TransportError
from seatwatch.shared.models import ActivityRecord, Identity
from seatwatch.shared.tools.http import create_client, parse_json, send_request
from seatwatch.shared.windows import ActivityWindow
from seatwatch.sources.base import UsageSource

log = structlog.get_logger()

# Owners administer the team and are never reclaim candidates
MONITORED_ROLES = frozenset({"member"})


class CursorMember(BaseModel):
    """Team member as returned by /teams/members."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: str = Field(..., min_length=1)
    role: str = Field(..., description="owner, member or free-owner")


class CursorDailyUsage(BaseModel):
    """One row of /teams/daily-usage-data. Only the fields used here."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    date: int = Field(..., description="Epoch milliseconds")
    is_active: bool = Field(default=False, alias="isActive")
    email: str | None = None


class CursorUsageSource(UsageSource):
    """Cursor Admin API adapter."""

    name = "cursor"
    display_name = "Cursor"

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        api_key: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CursorUsageSource":
        client = create_client(
            settings.cursor_api_base_url,
            timeout=settings.http_timeout_seconds,
            headers={"Content-Type": "application/json"},
            auth=(api_key, ""),
            transport=transport,
        )
        return cls(client)

    async def fetch_roster(self) -> list[Identity]:
        operation = "fetch_team_members"
        response = await send_request(
            self._client, "GET", "/teams/members", service=self.name, operation=operation
        )
        body = parse_json(response, service=self.name, operation=operation)

        try:
            members = [CursorMember.model_validate(m) for m in body.get("teamMembers", [])]
        except (ValidationError, AttributeError) as e:
            raise TransportError(
                self.name, operation, error_message=f"Malformed team members payload: {e}"
            ) from e

        roster = [
            Identity(name=member.name or member.email, email=member.email)
            for member in members
            if member.role in MONITORED_ROLES
        ]

        log.info(
            "cursor_team_members_fetched",
            total=len(members),
            monitored=len(roster),
        )
        return roster

    async def fetch_activity(self, window: ActivityWindow) -> list[ActivityRecord]:
        operation = "fetch_daily_usage_data"
        response = await send_request(
            self._client,
            "POST",
            "/teams/daily-usage-data",
            json={"startDate": window.start_epoch_ms, "endDate": window.end_epoch_ms},
            service=self.name,
            operation=operation,
        )
        body = parse_json(response, service=self.name, operation=operation)

        try:
            rows = [CursorDailyUsage.model_validate(r) for r in body.get("data", [])]
        except (ValidationError, AttributeError) as e:
            raise TransportError(
                self.name, operation, error_message=f"Malformed usage payload: {e}"
            ) from e

        # Rows without an email cannot be attributed to anyone
        records = [
            ActivityRecord(
                email=row.email,
                day=datetime.fromtimestamp(row.date / 1000, tz=timezone.utc),
                is_active=row.is_active,
            )
            for row in rows
            if row.email and window.contains(row.date)
        ]

        log.info(
            "cursor_usage_fetched",
            days_back=window.days_back,
            rows=len(rows),
            records=len(records),
            active_records=sum(1 for r in records if r.is_active),
        )
        return records
