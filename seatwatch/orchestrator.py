"""
Orchestrator

Runs one inactivity check across every enabled usage source:

1. Per source (concurrently, failures isolated): compute both windows,
   fetch roster and both activity sets, classify
2. Merge all per-source results
3. Send warning DMs to the notify tier (concurrently) and tally outcomes
4. Send one removal report to the administrator; log and swallow failure
5. Return counters for observability
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

import structlog

from seatwatch.classification import classify, merge
from seatwatch.notifications import NotificationDispatcher, format_service_names
from seatwatch.shared.config import Settings
from seatwatch.shared.exceptions import ConfigError, SourceError
from seatwatch.shared.models import ClassificationResult, Identity, MergedResult, Tier
from seatwatch.shared.windows import compute_window
from seatwatch.sources.base import UsageSource

log = structlog.get_logger()

DEFAULT_SERVICE_LABEL = "your licensed developer tools"


@dataclass
class SourceReport:
    """What one source contributed to the run."""

    source: str
    roster_size: int = 0
    to_notify: int = 0
    to_remove: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregate counters for one run."""

    warned: int = 0
    warn_failed: int = 0
    removal_candidates: int = 0
    report_sent: bool = False
    notifications_enabled: bool = True
    sources: list[SourceReport] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_response(self) -> dict[str, Any]:
        """JSON shape returned by the Lambda and the local server."""
        return {
            "warned": self.warned,
            "warnFailed": self.warn_failed,
            "removalCandidates": self.removal_candidates,
            "reportSent": self.report_sent,
            "notificationsEnabled": self.notifications_enabled,
            "sources": [
                {
                    "source": s.source,
                    "rosterSize": s.roster_size,
                    "toNotify": s.to_notify,
                    "toRemove": s.to_remove,
                    "error": s.error,
                }
                for s in self.sources
            ],
            "durationMs": round(self.duration_ms, 2),
        }


class Orchestrator:
    """
    Wires usage sources, classification, merging, and dispatch for one run.

    A dispatcher of None (or enable_notifications=False) skips all chat
    calls; classification still runs and removal candidates are counted.
    """

    def __init__(
        self,
        settings: Settings,
        sources: list[UsageSource],
        dispatcher: NotificationDispatcher | None = None,
        admin_recipient: str | None = None,
    ):
        self.settings = settings
        self.sources = sources
        self.dispatcher = dispatcher
        self.admin_recipient = admin_recipient

    @property
    def notifications_enabled(self) -> bool:
        return self.settings.enable_notifications and self.dispatcher is not None

    async def classify_source(self, source: UsageSource) -> ClassificationResult:
        """Fetch and classify one source. Raises the source's errors."""
        notify_window = compute_window(self.settings.notify_after_days)
        remove_window = compute_window(self.settings.remove_after_days)

        log.info(
            "fetching_usage_data",
            source=source.name,
            notify_window_start=notify_window.start.isoformat(),
            remove_window_start=remove_window.start.isoformat(),
            window_end=notify_window.end.isoformat(),
        )

        tasks = [
            asyncio.ensure_future(source.fetch_roster()),
            asyncio.ensure_future(source.fetch_activity(notify_window)),
            asyncio.ensure_future(source.fetch_activity(remove_window)),
        ]
        try:
            roster, notify_records, remove_records = await asyncio.gather(*tasks)
        except BaseException:
            # Stop sibling requests before the caller closes the HTTP client
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if not roster:
            log.info("empty_roster", source=source.name)

        return classify(roster, notify_records, remove_records, source=source.display_name)

    async def _process_source(self, source: UsageSource) -> tuple[SourceReport, ClassificationResult]:
        report = SourceReport(source=source.name)
        try:
            result = await self.classify_source(source)
        except ConfigError:
            raise
        except SourceError as e:
            log.error(
                "usage_source_failed",
                source=source.name,
                error=str(e),
                error_type=type(e).__name__,
                status_code=e.status_code,
            )
            report.error = str(e)
            return report, ClassificationResult(source=source.display_name)
        except Exception as e:
            log.exception("usage_source_crashed", source=source.name, error=str(e))
            report.error = f"{type(e).__name__}: {e}"
            return report, ClassificationResult(source=source.display_name)

        report.roster_size = result.roster_size
        report.to_notify = len(result.to_notify)
        report.to_remove = len(result.to_remove)
        return report, result

    def _service_label(
        self, merged: MergedResult, identities: list[Identity], tier: Tier
    ) -> str:
        names: list[str] = []
        for identity in identities:
            for service in merged.services_for(identity.email, tier):
                if service not in names:
                    names.append(service)
        return format_service_names(names) or DEFAULT_SERVICE_LABEL

    async def _dispatch(self, merged: MergedResult, summary: RunSummary) -> None:
        batch = await self.dispatcher.send_warnings(
            merged.to_notify,
            self.settings.notify_after_days,
            lambda identity: self._service_label(merged, [identity], Tier.NOTIFY),
        )
        summary.warned = batch.sent
        summary.warn_failed = batch.failed

        if not merged.to_remove:
            log.info("no_removal_report_needed")
            return
        if not self.admin_recipient:
            log.warning("removal_report_recipient_missing", candidates=len(merged.to_remove))
            return

        try:
            summary.report_sent = await self.dispatcher.send_removal_report(
                self.admin_recipient,
                merged.to_remove,
                self.settings.remove_after_days,
                self._service_label(merged, merged.to_remove, Tier.REMOVE),
            )
        except Exception as e:
            log.error(
                "removal_report_failed",
                recipient=self.admin_recipient,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def run(self) -> RunSummary:
        """
        Execute one full check.

        Returns:
            RunSummary with warned / warn_failed / removal_candidates

        Raises:
            ConfigError: Only for invalid configuration
        """
        start_time = time.time()
        summary = RunSummary(notifications_enabled=self.notifications_enabled)

        log.info(
            "inactive_users_check_started",
            sources=[s.name for s in self.sources],
            notify_after_days=self.settings.notify_after_days,
            remove_after_days=self.settings.remove_after_days,
            notifications_enabled=summary.notifications_enabled,
        )

        processed = await asyncio.gather(*(self._process_source(s) for s in self.sources))
        summary.sources = [report for report, _ in processed]

        merged = merge([result for _, result in processed])
        summary.removal_candidates = len(merged.to_remove)

        if summary.notifications_enabled:
            await self._dispatch(merged, summary)
        else:
            log.info(
                "notifications_disabled",
                would_warn=len(merged.to_notify),
                would_report=len(merged.to_remove),
            )

        summary.duration_ms = (time.time() - start_time) * 1000

        log.info(
            "inactive_users_check_completed",
            warned=summary.warned,
            warn_failed=summary.warn_failed,
            removal_candidates=summary.removal_candidates,
            report_sent=summary.report_sent,
            failed_sources=[s.source for s in summary.sources if not s.succeeded],
            duration_ms=summary.duration_ms,
        )

        return summary
