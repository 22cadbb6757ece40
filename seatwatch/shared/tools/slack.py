"""
Slack Tools

Minimal Slack Web API client covering what the notifier needs:
email lookup and chat.postMessage. Slack answers most failures with
HTTP 200 and an `ok: false` body, so both layers are checked.
"""

import httpx
import structlog

from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import AuthError, TransportError
from seatwatch.shared.tools.http import create_client, parse_json, send_request

log = structlog.get_logger()

SERVICE = "slack"

AUTH_ERROR_CODES = frozenset({
    "invalid_auth",
    "not_authed",
    "account_inactive",
    "token_revoked",
    "token_expired",
    "missing_scope",
})
USER_NOT_FOUND = "users_not_found"


class SlackClient:
    """
    Slack Web API client.

    Usage:
        async with SlackClient.from_settings(settings, bot_token) as slack:
            handle = await slack.lookup_handle("jane@example.com")
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        bot_token: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SlackClient":
        client = create_client(
            settings.slack_api_base_url.rstrip("/") + "/",
            timeout=settings.http_timeout_seconds,
            headers={"Authorization": f"Bearer {bot_token}"},
            transport=transport,
        )
        return cls(client)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "SlackClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _check_body(self, body: dict, operation: str) -> None:
        if body.get("ok"):
            return
        error_code = body.get("error", "unknown_error")
        if error_code in AUTH_ERROR_CODES:
            raise AuthError(SERVICE, operation, error_message=error_code)
        raise TransportError(SERVICE, operation, error_message=error_code)

    async def lookup_handle(self, email: str) -> str | None:
        """
        Find the Slack user ID for an email.

        Returns:
            User ID, or None if no Slack user has that email

        Raises:
            AuthError, TransportError: If the lookup itself failed
        """
        operation = "users.lookupByEmail"
        response = await send_request(
            self._client,
            "GET",
            operation,
            params={"email": email},
            service=SERVICE,
            operation=operation,
        )
        body = parse_json(response, service=SERVICE, operation=operation)

        if not body.get("ok") and body.get("error") == USER_NOT_FOUND:
            log.debug("slack_user_not_found", email=email)
            return None
        self._check_body(body, operation)

        return (body.get("user") or {}).get("id")

    async def _post_message(self, channel: str, text: str) -> None:
        operation = "chat.postMessage"
        response = await send_request(
            self._client,
            "POST",
            operation,
            json={"channel": channel, "text": text},
            headers={"Content-Type": "application/json; charset=utf-8"},
            service=SERVICE,
            operation=operation,
        )
        self._check_body(parse_json(response, service=SERVICE, operation=operation), operation)

    async def send_direct_message(self, handle: str, text: str) -> bool:
        """Post a DM to a user ID. Raises on failure."""
        await self._post_message(handle, text)
        log.info("slack_dm_sent", handle=handle)
        return True

    async def send_channel_message(self, recipient: str, text: str) -> bool:
        """Post to a user or channel ID. Raises on failure."""
        await self._post_message(recipient, text)
        log.info("slack_message_sent", recipient=recipient)
        return True
