"""
Inactivity classification and cross-source merging.
"""

from seatwatch.classification.classifier import active_emails, classify, find_inactive
from seatwatch.classification.deduplicator import merge

__all__ = [
    "active_emails",
    "classify",
    "find_inactive",
    "merge",
]
