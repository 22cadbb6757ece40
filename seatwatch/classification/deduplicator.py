"""
Cross-Source Deduplicator

Merges per-source classification results into one pair of tiers keyed by
normalized email. The first record seen for an email wins; removal in any
source overrides notification from another.

Sources are tracked per tier, so a user removed for one tool but only
warned for another is reported for the first tool alone.
"""

import structlog

from seatwatch.shared.models import ClassificationResult, Identity, MergedResult

log = structlog.get_logger()


def _collect(
    identities: list[Identity],
    source: str,
    seen: dict[str, Identity],
    services: dict[str, list[str]],
) -> None:
    for identity in identities:
        seen.setdefault(identity.email, identity)
        names = services.setdefault(identity.email, [])
        if source and source not in names:
            names.append(source)


def merge(results: list[ClassificationResult]) -> MergedResult:
    """
    Merge classification results from several sources.

    Args:
        results: Per-source results, in source iteration order

    Returns:
        MergedResult with distinct identities per tier, disjoint tiers,
        and the sources that placed each email in each tier
    """
    remove_by_email: dict[str, Identity] = {}
    notify_by_email: dict[str, Identity] = {}
    remove_services: dict[str, list[str]] = {}
    notify_services: dict[str, list[str]] = {}

    for result in results:
        _collect(result.to_remove, result.source, remove_by_email, remove_services)
        _collect(result.to_notify, result.source, notify_by_email, notify_services)

    to_remove = list(remove_by_email.values())
    to_notify = [
        identity for email, identity in notify_by_email.items() if email not in remove_by_email
    ]

    log.info(
        "classification_results_merged",
        sources=[r.source for r in results],
        to_notify=len(to_notify),
        to_remove=len(to_remove),
    )

    return MergedResult(
        to_notify=to_notify,
        to_remove=to_remove,
        notify_services={
            email: names for email, names in notify_services.items() if email not in remove_by_email
        },
        remove_services=remove_services,
    )
