"""
Run wiring shared by the Lambda handler and the local server: builds the
concrete adapters and Slack client, runs the orchestrator, and closes
every HTTP client afterwards.
"""

from contextlib import AsyncExitStack

import httpx

from seatwatch.notifications import NotificationDispatcher
from seatwatch.orchestrator import Orchestrator, RunSummary
from seatwatch.shared.config import Settings
from seatwatch.shared.tools.secrets import Secrets
from seatwatch.shared.tools.slack import SlackClient
from seatwatch.sources import build_sources


async def run_check(
    settings: Settings,
    secrets: Secrets,
    *,
    only_sources: list[str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """
    Build collaborators, run one check, and close every HTTP client.

    Args:
        settings: Validated settings
        secrets: Credentials validated against settings
        only_sources: Optional subset of source names
        transport: Optional httpx transport for every client (tests)

    Returns:
        RunSummary of the run
    """
    sources = build_sources(settings, secrets, only=only_sources, transport=transport)

    async with AsyncExitStack() as stack:
        for source in sources:
            stack.push_async_callback(source.close)

        # No Slack client at all when notifications are off
        dispatcher = None
        if settings.enable_notifications:
            slack = SlackClient.from_settings(settings, secrets.slack_bot_token, transport=transport)
            stack.push_async_callback(slack.close)
            dispatcher = NotificationDispatcher(slack)

        orchestrator = Orchestrator(
            settings,
            sources,
            dispatcher=dispatcher,
            admin_recipient=secrets.slack_user_id,
        )
        return await orchestrator.run()
