"""
Usage Source Base

Common interface for vendor usage adapters. The orchestrator only sees
this interface; vendor-specific auth and paging stay inside each
adapter.
"""

from abc import ABC, abstractmethod

import httpx
import structlog

from seatwatch.shared.models import ActivityRecord, Identity
from seatwatch.shared.windows import ActivityWindow

log = structlog.get_logger()


class UsageSource(ABC):
    """
    A vendor that can list licensed identities and their activity.

    Both fetch methods raise AuthError, NotFoundError or TransportError.
    Subclasses set `name` (config key) and `display_name` (used in messages).
    """

    name: str = ""
    display_name: str = ""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @abstractmethod
    async def fetch_roster(self) -> list[Identity]:
        """Licensed identities subject to monitoring (exempt users excluded)."""

    @abstractmethod
    async def fetch_activity(self, window: ActivityWindow) -> list[ActivityRecord]:
        """Activity records dated inside the window, and only those."""

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "UsageSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
