"""
Unit tests for the Cursor and GitHub Copilot usage sources.

HTTP is served by httpx.MockTransport handlers.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from seatwatch.orchestrator import Orchestrator
from seatwatch.shared.exceptions import AuthError, ConfigError, NotFoundError, TransportError
from seatwatch.shared.tools.secrets import Secrets
from seatwatch.shared.windows import MS_PER_DAY, compute_window
from seatwatch.sources import (
    SOURCE_NAMES,
    CursorUsageSource,
    GitHubCopilotUsageSource,
    build_sources,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


# =============================================================================
# Cursor
# =============================================================================


@pytest.fixture
def cursor_members():
    return {
        "teamMembers": [
            {"name": "Owner", "email": "owner@x.com", "role": "owner"},
            {"name": "John", "email": "John@X.com", "role": "member"},
            {"name": "", "email": "jane@x.com", "role": "member"},
            {"name": "Free", "email": "free@x.com", "role": "free-owner"},
        ]
    }


def make_cursor(settings, handler) -> CursorUsageSource:
    return CursorUsageSource.from_settings(
        settings, "key_cursor_test", transport=httpx.MockTransport(handler)
    )


class TestCursorRoster:
    """Tests for CursorUsageSource.fetch_roster."""

    @pytest.mark.asyncio
    async def test_only_members_are_monitored(self, settings, cursor_members):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/teams/members"
            return json_response(cursor_members)

        async with make_cursor(settings, handler) as source:
            roster = await source.fetch_roster()

        assert [i.email for i in roster] == ["john@x.com", "jane@x.com"]
        assert roster[1].name == "jane@x.com"

    @pytest.mark.asyncio
    async def test_basic_auth_with_api_key(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers["authorization"]
            return json_response({"teamMembers": []})

        async with make_cursor(settings, handler) as source:
            await source.fetch_roster()

        expected = base64.b64encode(b"key_cursor_test:").decode()
        assert seen["authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_unauthorized_raises_auth_error(self, settings):
        async with make_cursor(settings, lambda r: json_response({}, 401)) as source:
            with pytest.raises(AuthError) as exc_info:
                await source.fetch_roster()

        assert exc_info.value.status_code == 401
        assert exc_info.value.service == "cursor"

    @pytest.mark.asyncio
    async def test_server_error_raises_transport_error(self, settings):
        async with make_cursor(settings, lambda r: json_response({}, 503)) as source:
            with pytest.raises(TransportError, match="Unexpected status 503"):
                await source.fetch_roster()

    @pytest.mark.asyncio
    async def test_malformed_payload(self, settings):
        payload = {"teamMembers": [{"name": "No Email", "role": "member"}]}

        async with make_cursor(settings, lambda r: json_response(payload)) as source:
            with pytest.raises(TransportError, match="Malformed team members payload"):
                await source.fetch_roster()

    @pytest.mark.asyncio
    async def test_non_json_body(self, settings):
        async with make_cursor(settings, lambda r: httpx.Response(200, text="<html>")) as source:
            with pytest.raises(TransportError, match="Invalid JSON body"):
                await source.fetch_roster()

    @pytest.mark.asyncio
    async def test_network_error(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_cursor(settings, handler) as source:
            with pytest.raises(TransportError, match="connection refused"):
                await source.fetch_roster()


class TestCursorActivity:
    """Tests for CursorUsageSource.fetch_activity."""

    @pytest.mark.asyncio
    async def test_posts_window_and_filters_rows(self, settings):
        window = compute_window(60, now=NOW)
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/teams/daily-usage-data"
            seen["body"] = json.loads(request.content)
            return json_response(
                {
                    "data": [
                        {"date": NOW_MS - 5 * MS_PER_DAY, "isActive": True, "email": "John@x.com"},
                        {"date": NOW_MS - 6 * MS_PER_DAY, "isActive": False, "email": "jane@x.com"},
                        # outside the window on either side
                        {"date": NOW_MS - 61 * MS_PER_DAY, "isActive": True, "email": "old@x.com"},
                        {"date": NOW_MS, "isActive": True, "email": "edge@x.com"},
                        # unattributable
                        {"date": NOW_MS - MS_PER_DAY, "isActive": True},
                    ]
                }
            )

        async with make_cursor(settings, handler) as source:
            records = await source.fetch_activity(window)

        assert seen["body"] == {
            "startDate": window.start_epoch_ms,
            "endDate": window.end_epoch_ms,
        }
        assert [(r.email, r.is_active) for r in records] == [
            ("john@x.com", True),
            ("jane@x.com", False),
        ]
        assert records[0].day == NOW - timedelta(days=5)

    @pytest.mark.asyncio
    async def test_window_start_is_inclusive(self, settings):
        window = compute_window(60, now=NOW)
        payload = {"data": [{"date": window.start_epoch_ms, "isActive": True, "email": "a@x.com"}]}

        async with make_cursor(settings, lambda r: json_response(payload)) as source:
            records = await source.fetch_activity(window)

        assert [r.email for r in records] == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_empty_data(self, settings):
        async with make_cursor(settings, lambda r: json_response({})) as source:
            assert await source.fetch_activity(compute_window(60, now=NOW)) == []


# =============================================================================
# GitHub Copilot
# =============================================================================


def seat(login: str, last_activity_at: datetime | None = None, email: str | None = None) -> dict:
    return {
        "assignee": {"login": login, "email": email, "type": "User"},
        "last_activity_at": last_activity_at.isoformat() if last_activity_at else None,
        "last_activity_editor": "vscode",
    }


def make_copilot(settings, handler, org: str = "acme") -> GitHubCopilotUsageSource:
    return GitHubCopilotUsageSource.from_settings(
        settings, "ghp_test", org, transport=httpx.MockTransport(handler)
    )


class TestGitHubCopilot:
    """Tests for GitHubCopilotUsageSource."""

    @pytest.mark.asyncio
    async def test_paginates_until_short_page(self, settings):
        pages = {
            1: [seat(f"user{i}") for i in range(100)],
            2: [seat("last")],
        }
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/orgs/acme/copilot/billing/seats"
            assert request.url.params["per_page"] == "100"
            assert request.headers["authorization"] == "Bearer ghp_test"
            page = int(request.url.params["page"])
            requested.append(page)
            return json_response({"total_seats": 101, "seats": pages[page]})

        async with make_copilot(settings, handler) as source:
            roster = await source.fetch_roster()

        assert requested == [1, 2]
        assert len(roster) == 101
        assert roster[-1].name == "last"

    @pytest.mark.asyncio
    async def test_seats_fetched_once_per_run(self, settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return json_response({"seats": [seat("octocat", NOW - timedelta(days=3))]})

        async with make_copilot(settings, handler) as source:
            await source.fetch_roster()
            await source.fetch_activity(compute_window(60))
            await source.fetch_activity(compute_window(90))

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_email_fallback(self, settings):
        seats = [seat("octocat"), seat("hubot", email="Hubot@Acme.com")]

        async with make_copilot(settings, lambda r: json_response({"seats": seats})) as source:
            roster = await source.fetch_roster()

        assert [(i.name, i.email) for i in roster] == [
            ("octocat", "octocat@github.local"),
            ("hubot", "hubot@acme.com"),
        ]

    @pytest.mark.asyncio
    async def test_activity_derived_from_last_activity(self, settings):
        seats = [
            seat("recent", NOW - timedelta(days=10)),
            seat("stale", NOW - timedelta(days=75)),
            seat("never"),
        ]

        async with make_copilot(settings, lambda r: json_response({"seats": seats})) as source:
            notify = await source.fetch_activity(compute_window(60, now=NOW))
            remove = await source.fetch_activity(compute_window(90, now=NOW))

        assert [r.email for r in notify] == ["recent@github.local"]
        assert [r.email for r in remove] == ["recent@github.local", "stale@github.local"]
        assert all(r.is_active for r in remove)

    @pytest.mark.asyncio
    async def test_activity_after_window_end_counts(self, settings):
        """A seat used after the window closed is active, recorded inside the window."""
        window = compute_window(60, now=NOW)
        seats = [seat("amy", window.end + timedelta(seconds=3), email="amy@x.com")]

        async with make_copilot(settings, lambda r: json_response({"seats": seats})) as source:
            records = await source.fetch_activity(window)

        assert [r.email for r in records] == ["amy@x.com"]
        assert window.contains_datetime(records[0].day)

    @pytest.mark.asyncio
    async def test_late_activity_keeps_seat_out_of_both_tiers(self, settings):
        """Activity stamped just after "now" is neither notified nor removed."""
        used_at = datetime.now(timezone.utc) + timedelta(seconds=3)
        seats = [seat("amy", used_at, email="amy@x.com")]

        async with make_copilot(settings, lambda r: json_response({"seats": seats})) as source:
            result = await Orchestrator(settings, [source]).classify_source(source)

        assert result.is_empty

    @pytest.mark.asyncio
    async def test_org_not_found(self, settings):
        async with make_copilot(settings, lambda r: json_response({}, 404), org="nope") as source:
            with pytest.raises(NotFoundError) as exc_info:
                await source.fetch_roster()

        assert "Organization 'nope' not found or no Copilot subscription" in str(exc_info.value)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_forbidden(self, settings):
        async with make_copilot(settings, lambda r: json_response({}, 403)) as source:
            with pytest.raises(AuthError):
                await source.fetch_roster()

    @pytest.mark.asyncio
    async def test_malformed_seats(self, settings):
        payload = {"seats": [{"assignee": {}}]}

        async with make_copilot(settings, lambda r: json_response(payload)) as source:
            with pytest.raises(TransportError, match="Malformed seats payload"):
                await source.fetch_roster()


# =============================================================================
# build_sources
# =============================================================================


class TestBuildSources:
    """Tests for build_sources."""

    @pytest.fixture
    def secrets(self, secrets_payload):
        return Secrets.model_validate(secrets_payload)

    @pytest.mark.asyncio
    async def test_builds_enabled_sources_in_order(self, settings, secrets):
        sources = build_sources(settings, secrets)

        assert [s.name for s in sources] == list(SOURCE_NAMES)
        assert sources[1].organization == "acme"
        for source in sources:
            await source.close()

    @pytest.mark.asyncio
    async def test_respects_toggles(self, settings, secrets):
        settings = settings.model_copy(update={"enable_cursor": False})

        sources = build_sources(settings, secrets)

        assert [s.name for s in sources] == ["github-copilot"]
        await sources[0].close()

    @pytest.mark.asyncio
    async def test_only_subset(self, settings, secrets):
        sources = build_sources(settings, secrets, only=["cursor"])

        assert [s.name for s in sources] == ["cursor"]
        await sources[0].close()

    def test_unknown_source(self, settings, secrets):
        with pytest.raises(ConfigError, match="Unknown usage source"):
            build_sources(settings, secrets, only=["jetbrains"])
