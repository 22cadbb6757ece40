"""
Integration test fixtures and configuration.

Integration tests run the real adapters, Slack client, and orchestrator
against one in-process httpx.MockTransport that fakes the Cursor,
GitHub, and Slack APIs.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from seatwatch.shared.tools.secrets import Secrets


@dataclass
class FakeVendorApis:
    """
    Routes requests by host to fake Cursor, GitHub, and Slack handlers.

    Features:
    - Cursor team members and daily usage (filtered by startDate/endDate)
    - GitHub Copilot seats, paginated
    - Slack user lookup and chat.postMessage recording
    - Forced status codes per host for failure scenarios
    """

    now: datetime
    cursor_members: list[dict] = field(default_factory=list)
    cursor_usage: list[dict] = field(default_factory=list)
    copilot_seats: list[dict] = field(default_factory=list)
    slack_users: dict[str, str] = field(default_factory=dict)
    status_overrides: dict[str, int] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    posted_messages: list[dict] = field(default_factory=list)

    def add_cursor_member(self, name: str, email: str, role: str = "member") -> None:
        self.cursor_members.append({"name": name, "email": email, "role": role})

    def add_cursor_activity(self, email: str, days_ago: float, is_active: bool = True) -> None:
        moment = self.now - timedelta(days=days_ago)
        self.cursor_usage.append(
            {
                "date": int(moment.timestamp() * 1000),
                "isActive": is_active,
                "email": email,
                "totalLinesAdded": 10,
            }
        )

    def add_copilot_seat(
        self, login: str, last_active_days_ago: float | None, email: str | None = None
    ) -> None:
        last_activity = None
        if last_active_days_ago is not None:
            last_activity = (self.now - timedelta(days=last_active_days_ago)).isoformat()
        self.copilot_seats.append(
            {
                "assignee": {"login": login, "email": email, "type": "User"},
                "last_activity_at": last_activity,
            }
        )

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    # --- Handlers ---

    def _cursor(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/teams/members":
            return httpx.Response(200, json={"teamMembers": self.cursor_members})
        if request.url.path == "/teams/daily-usage-data":
            body = json.loads(request.content)
            rows = [
                row
                for row in self.cursor_usage
                if body["startDate"] <= row["date"] <= body["endDate"]
            ]
            return httpx.Response(200, json={"data": rows, "period": body})
        return httpx.Response(404)

    def _github(self, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        per_page = int(request.url.params.get("per_page", "50"))
        start = (page - 1) * per_page
        return httpx.Response(
            200,
            json={
                "total_seats": len(self.copilot_seats),
                "seats": self.copilot_seats[start : start + per_page],
            },
        )

    def _slack(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/users.lookupByEmail"):
            email = request.url.params["email"]
            if email in self.slack_users:
                return httpx.Response(200, json={"ok": True, "user": {"id": self.slack_users[email]}})
            return httpx.Response(200, json={"ok": False, "error": "users_not_found"})
        if request.url.path.endswith("/chat.postMessage"):
            self.posted_messages.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True, "ts": "1700000000.000100"})
        return httpx.Response(200, json={"ok": False, "error": "unknown_method"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.status_overrides:
            return httpx.Response(self.status_overrides[host], json={"message": "forced"})
        if host == "api.cursor.com":
            return self._cursor(request)
        if host == "api.github.com":
            return self._github(request)
        if host == "slack.com":
            return self._slack(request)
        return httpx.Response(404)


@pytest.fixture
def fake_apis(now) -> FakeVendorApis:
    return FakeVendorApis(now=now)


@pytest.fixture
def transport(fake_apis) -> httpx.MockTransport:
    return httpx.MockTransport(fake_apis)


@pytest.fixture
def secrets(secrets_payload) -> Secrets:
    return Secrets.model_validate(secrets_payload)
