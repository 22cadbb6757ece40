"""
Inactivity Classifier

Partitions a roster into notify and remove tiers from two sets of
activity records, one per lookback window.

A roster member with no active record in a window is inactive for that
window; missing data is not treated as unknown. Removal takes precedence,
so nobody in to_remove is also in to_notify.
"""

from collections.abc import Iterable

import structlog

from seatwatch.shared.models import ActivityRecord, ClassificationResult, Identity

log = structlog.get_logger()


def active_emails(records: Iterable[ActivityRecord]) -> set[str]:
    """Emails with at least one active record."""
    return {record.email for record in records if record.is_active}


def find_inactive(roster: Iterable[Identity], records: Iterable[ActivityRecord]) -> list[Identity]:
    """
    Roster members with no active record.

    Args:
        roster: Identities to check
        records: Activity records for one window (already window-filtered)

    Returns:
        Inactive identities, in roster order
    """
    active = active_emails(records)
    return [identity for identity in roster if identity.email not in active]


def classify(
    roster: list[Identity],
    notify_window_records: list[ActivityRecord],
    remove_window_records: list[ActivityRecord],
    *,
    source: str = "",
) -> ClassificationResult:
    """
    Classify roster members into notify and remove tiers.

    Args:
        roster: Monitored identities for one source
        notify_window_records: Activity inside the short window
        remove_window_records: Activity inside the long window
        source: Source name recorded on the result

    Returns:
        ClassificationResult with disjoint to_notify / to_remove lists
    """
    to_remove = find_inactive(roster, remove_window_records)
    remove_emails = {identity.email for identity in to_remove}

    candidate_notify = find_inactive(roster, notify_window_records)
    to_notify = [identity for identity in candidate_notify if identity.email not in remove_emails]

    log.info(
        "inactive_users_classified",
        source=source,
        roster_size=len(roster),
        to_notify=len(to_notify),
        to_remove=len(to_remove),
        notify_demoted_to_remove=len(candidate_notify) - len(to_notify),
    )

    return ClassificationResult(
        source=source,
        to_notify=to_notify,
        to_remove=to_remove,
        roster_size=len(roster),
    )
