"""
Notification Dispatcher

Delivers the two notification shapes over the chat sink:
- a warning DM to each notify-tier user (many, independently best-effort)
- one removal report to the administrator (single, failure surfaced)

Email -> chat handle lookups are cached in a DispatcherState that lives
for one run. Per-identity failures become False / unresolved outcomes
and never abort the batch.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from seatwatch.shared.exceptions import SourceError, TransportError
from seatwatch.shared.models import Identity, NotificationOutcome

log = structlog.get_logger()

WARNING_TEMPLATE = (
    "You haven't used {service_name} for {inactive_days} days. "
    "If you are planning to not use the app, please inform IT so we can remove the license."
)
REPORT_HEADER_TEMPLATE = (
    "{service_name} license removal candidates (no activity for {inactive_days}+ days):"
)


class ChatSink(Protocol):
    """Chat API operations the dispatcher depends on."""

    async def lookup_handle(self, email: str) -> str | None:
        """Handle for an email, or None when the chat has no such user."""
        ...

    async def send_direct_message(self, handle: str, text: str) -> bool:
        ...

    async def send_channel_message(self, recipient: str, text: str) -> bool:
        ...


def format_service_names(names: list[str]) -> str:
    """Human list: 'A', 'A and B', 'A, B and C'."""
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} and {names[-1]}"


def format_warning_message(service_name: str, inactive_days: int) -> str:
    return WARNING_TEMPLATE.format(service_name=service_name, inactive_days=inactive_days)


def format_report_line(identity: Identity, handle: str | None) -> str:
    if handle:
        return f"- {identity.name} ({identity.email}, <@{handle}>)"
    return f"- {identity.name} ({identity.email})"


def format_removal_report(
    service_name: str,
    inactive_days: int,
    lines: list[str],
) -> str:
    header = REPORT_HEADER_TEMPLATE.format(service_name=service_name, inactive_days=inactive_days)
    return "\n".join([header, *lines])


@dataclass
class DispatcherState:
    """
    Mutable state for one run.

    handles caches lookups by normalized email; None marks an identity
    that could not be resolved (not found or lookup failed).
    """

    handles: dict[str, str | None] = field(default_factory=dict)
    outcomes: list[NotificationOutcome] = field(default_factory=list)

    @property
    def unresolved(self) -> list[str]:
        return [email for email, handle in self.handles.items() if handle is None]


@dataclass
class WarningBatchResult:
    """Tally of a batch of warning DMs."""

    sent: int = 0
    failed: int = 0


class NotificationDispatcher:
    """
    Sends warnings and removal reports through a ChatSink.

    Usage:
        dispatcher = NotificationDispatcher(slack_client)
        ok = await dispatcher.send_warning(identity, 60, "Cursor")
    """

    def __init__(self, chat: ChatSink, state: DispatcherState | None = None):
        self._chat = chat
        self.state = state or DispatcherState()

    def _record(self, outcome: NotificationOutcome) -> None:
        self.state.outcomes.append(outcome)

    async def resolve_handle(self, email: str) -> str | None:
        """
        Resolve an email to a chat handle, consulting the cache first.

        Lookup failures are logged and cached as unresolved.
        """
        if email in self.state.handles:
            return self.state.handles[email]

        try:
            handle = await self._chat.lookup_handle(email)
        except Exception as e:
            log.warning(
                "chat_handle_lookup_failed",
                email=email,
                error=str(e),
                error_type=type(e).__name__,
            )
            handle = None
        else:
            if handle is None:
                log.warning("chat_user_not_found", email=email)

        self.state.handles[email] = handle
        return handle

    async def send_warning(self, identity: Identity, inactive_days: int, service_name: str) -> bool:
        """
        Send the inactivity warning DM.

        Returns:
            True if delivered; False if unresolved or the send failed
        """
        handle = await self.resolve_handle(identity.email)
        if handle is None:
            self._record(
                NotificationOutcome(email=identity.email, error="unresolved chat handle")
            )
            return False

        text = format_warning_message(service_name, inactive_days)
        try:
            delivered = await self._chat.send_direct_message(handle, text)
        except Exception as e:
            log.warning(
                "inactivity_warning_failed",
                email=identity.email,
                handle=handle,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._record(NotificationOutcome(email=identity.email, handle=handle, error=str(e)))
            return False

        if not delivered:
            log.warning("inactivity_warning_not_delivered", email=identity.email, handle=handle)
            self._record(
                NotificationOutcome(email=identity.email, handle=handle, error="not delivered")
            )
            return False

        log.info("inactivity_warning_sent", email=identity.email, service=service_name)
        self._record(NotificationOutcome(email=identity.email, handle=handle, delivered=True))
        return True

    async def send_warnings(
        self,
        identities: list[Identity],
        inactive_days: int,
        service_name: str | Callable[[Identity], str],
    ) -> WarningBatchResult:
        """
        Send warnings to many identities concurrently and tally the results.

        Args:
            identities: Notify-tier identities
            inactive_days: Days shown in the message
            service_name: Fixed name, or a callable giving the name per identity
        """
        if not identities:
            log.info("no_inactivity_warnings_needed")
            return WarningBatchResult()

        def name_for(identity: Identity) -> str:
            return service_name(identity) if callable(service_name) else service_name

        results = await asyncio.gather(
            *(self.send_warning(i, inactive_days, name_for(i)) for i in identities),
            return_exceptions=True,
        )

        batch = WarningBatchResult()
        for identity, result in zip(identities, results):
            if result is True:
                batch.sent += 1
            else:
                if isinstance(result, BaseException):
                    log.error(
                        "inactivity_warning_crashed",
                        email=identity.email,
                        error=str(result),
                        error_type=type(result).__name__,
                    )
                batch.failed += 1

        log.info(
            "inactivity_warnings_completed",
            sent=batch.sent,
            failed=batch.failed,
            unresolved=self.state.unresolved,
        )
        return batch

    async def send_removal_report(
        self,
        recipient_handle: str,
        identities: list[Identity],
        inactive_days_threshold: int,
        service_name: str,
    ) -> bool:
        """
        Send the administrator's removal report.

        Returns:
            False if there was nothing to report, True once sent

        Raises:
            SourceError: If the final send fails (TransportError for
                anything not already classified)
        """
        if not identities:
            log.info("no_removal_candidates_to_report", service=service_name)
            return False

        handles = await asyncio.gather(*(self.resolve_handle(i.email) for i in identities))
        lines = [format_report_line(i, h) for i, h in zip(identities, handles)]
        text = format_removal_report(service_name, inactive_days_threshold, lines)

        log.info(
            "sending_removal_report",
            recipient=recipient_handle,
            candidates=len(identities),
            unresolved=sum(1 for h in handles if h is None),
        )

        try:
            delivered = await self._chat.send_channel_message(recipient_handle, text)
        except SourceError:
            raise
        except Exception as e:
            raise TransportError(
                "chat", "send_removal_report", error_message=str(e)
            ) from e

        if delivered is False:
            raise TransportError("chat", "send_removal_report", error_message="not delivered")

        log.info("removal_report_sent", recipient=recipient_handle, candidates=len(identities))
        return True
