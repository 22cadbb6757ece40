# Shared Models
"""
Pydantic models and result containers shared across the checker.
"""

from seatwatch.shared.models.usage import (
    ActivityRecord,
    ClassificationResult,
    Identity,
    MergedResult,
    NotificationOutcome,
    Tier,
    normalize_email,
)

__all__ = [
    "ActivityRecord",
    "ClassificationResult",
    "Identity",
    "MergedResult",
    "NotificationOutcome",
    "Tier",
    "normalize_email",
]
