# Usage Sources
"""
Vendor adapters behind the shared UsageSource interface.

- cursor: Cursor Admin API (team members + daily usage)
- github-copilot: GitHub Copilot billing API (seat assignments)
"""

import httpx
import structlog

from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import ConfigError
from seatwatch.shared.tools.secrets import Secrets
from seatwatch.sources.base import UsageSource
from seatwatch.sources.cursor import CursorUsageSource
from seatwatch.sources.github_copilot import GitHubCopilotUsageSource

log = structlog.get_logger()

SOURCE_NAMES = (CursorUsageSource.name, GitHubCopilotUsageSource.name)


def build_sources(
    settings: Settings,
    secrets: Secrets,
    *,
    only: list[str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[UsageSource]:
    """
    Instantiate the adapters enabled in settings.

    Args:
        settings: Application settings (feature toggles, base URLs)
        secrets: Validated credentials
        only: Restrict to these source names (still subject to the toggles)
        transport: Optional httpx transport shared by all adapters (tests)

    Returns:
        Enabled adapters, in a fixed order

    Raises:
        ConfigError: If `only` names an unknown source
    """
    if only is not None:
        unknown = sorted(set(only) - set(SOURCE_NAMES))
        if unknown:
            raise ConfigError("Unknown usage source", sources=unknown, known=list(SOURCE_NAMES))

    wanted = [name for name in settings.enabled_sources if only is None or name in only]
    sources: list[UsageSource] = []

    for name in wanted:
        if name == CursorUsageSource.name:
            sources.append(
                CursorUsageSource.from_settings(settings, secrets.cursor_api_key, transport=transport)
            )
        elif name == GitHubCopilotUsageSource.name:
            sources.append(
                GitHubCopilotUsageSource.from_settings(
                    settings,
                    secrets.github_token,
                    secrets.github_org,
                    transport=transport,
                )
            )

    log.info("usage_sources_built", sources=[s.name for s in sources])
    return sources


__all__ = [
    "SOURCE_NAMES",
    "CursorUsageSource",
    "GitHubCopilotUsageSource",
    "UsageSource",
    "build_sources",
]
