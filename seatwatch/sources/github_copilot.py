"""
GitHub Copilot Usage Source

Reads Copilot seat assignments for one organization.

Endpoint:
- GET /orgs/{org}/copilot/billing/seats?page=N&per_page=100

GitHub exposes only the latest activity per seat, so a seat yields at
most one ActivityRecord for a window: its last_activity_at, when that
is at or after the window start. The seat list is fetched once per adapter and
reused for the roster and both windows.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import NotFoundError, TransportError
from seatwatch.shared.models import ActivityRecord, Identity
from seatwatch.shared.tools.http import create_client, parse_json, send_request
from seatwatch.shared.windows import ActivityWindow
from seatwatch.sources.base import UsageSource

log = structlog.get_logger()

GITHUB_API_VERSION = "2022-11-28"
SEATS_PER_PAGE = 100  # GitHub API max
MAX_PAGES = 500


class GitHubAssignee(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str
    email: str | None = None


class CopilotSeat(BaseModel):
    """Seat assignment as returned by the Copilot billing API."""

    model_config = ConfigDict(extra="ignore")

    assignee: GitHubAssignee
    last_activity_at: datetime | None = None
    last_activity_editor: str | None = None
    pending_cancellation_date: str | None = None

    @field_validator("last_activity_at")
    @classmethod
    def _ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def email(self) -> str:
        # Members with a private email fall back to a stable synthetic address
        return self.assignee.email or f"{self.assignee.login}@github.local"


class GitHubCopilotUsageSource(UsageSource):
    """GitHub Copilot billing API adapter."""

    name = "github-copilot"
    display_name = "GitHub Copilot"

    def __init__(self, client: httpx.AsyncClient, organization: str):
        super().__init__(client)
        self.organization = organization
        self._seats: list[CopilotSeat] | None = None
        self._seats_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token: str,
        organization: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GitHubCopilotUsageSource":
        client = create_client(
            settings.github_api_base_url,
            timeout=settings.http_timeout_seconds,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            transport=transport,
        )
        return cls(client, organization)

    async def _fetch_seat_page(self, page: int) -> list[CopilotSeat]:
        operation = "fetch_copilot_seats"
        try:
            response = await send_request(
                self._client,
                "GET",
                f"/orgs/{self.organization}/copilot/billing/seats",
                params={"page": page, "per_page": SEATS_PER_PAGE},
                service=self.name,
                operation=operation,
            )
        except NotFoundError as e:
            raise NotFoundError(
                self.name,
                operation,
                error_message=(
                    f"Organization '{self.organization}' not found or no Copilot subscription"
                ),
                status_code=e.status_code,
            ) from e

        body = parse_json(response, service=self.name, operation=operation)
        try:
            return [CopilotSeat.model_validate(s) for s in body.get("seats", [])]
        except (ValidationError, AttributeError) as e:
            raise TransportError(
                self.name, operation, error_message=f"Malformed seats payload: {e}"
            ) from e

    async def fetch_seats(self) -> list[CopilotSeat]:
        """All seats of the organization, paginated on first use and cached."""
        async with self._seats_lock:
            if self._seats is not None:
                return self._seats

            seats: list[CopilotSeat] = []
            for page in range(1, MAX_PAGES + 1):
                batch = await self._fetch_seat_page(page)
                seats.extend(batch)
                log.debug(
                    "copilot_seats_page_fetched",
                    organization=self.organization,
                    page=page,
                    count=len(batch),
                    total=len(seats),
                )
                if len(batch) < SEATS_PER_PAGE:
                    break

            log.info(
                "copilot_seats_fetched",
                organization=self.organization,
                total=len(seats),
            )
            self._seats = seats
            return seats

    async def fetch_roster(self) -> list[Identity]:
        seats = await self.fetch_seats()
        return [Identity(name=seat.assignee.login, email=seat.email) for seat in seats]

    async def fetch_activity(self, window: ActivityWindow) -> list[ActivityRecord]:
        seats = await self.fetch_seats()
        # Activity after the window end still counts and is pinned inside it
        latest = window.end - timedelta(milliseconds=1)
        records = [
            ActivityRecord(
                email=seat.email,
                day=min(seat.last_activity_at, latest),
                is_active=True,
            )
            for seat in seats
            if seat.last_activity_at is not None
            and seat.last_activity_at >= window.start
        ]

        log.info(
            "copilot_activity_derived",
            days_back=window.days_back,
            seats=len(seats),
            active_in_window=len(records),
        )
        return records
