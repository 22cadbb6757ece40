"""
Activity Windows

Lookback windows anchored to "now". Each vendor is checked against two
windows per run: the short notify window and the longer remove window.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from seatwatch.shared.exceptions import ConfigError

log = structlog.get_logger()

MS_PER_DAY = 86_400_000


@dataclass(frozen=True)
class ActivityWindow:
    """
    Half-open interval [start_epoch_ms, end_epoch_ms).

    Records dated at start are inside the window, records dated at end are not.
    """

    start_epoch_ms: int
    end_epoch_ms: int
    days_back: int

    def contains(self, epoch_ms: int) -> bool:
        """Check whether a timestamp falls inside the window."""
        return self.start_epoch_ms <= epoch_ms < self.end_epoch_ms

    def contains_datetime(self, moment: datetime) -> bool:
        """Check whether a datetime falls inside the window (naive means UTC)."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return self.contains(int(moment.timestamp() * 1000))

    @property
    def start(self) -> datetime:
        return datetime.fromtimestamp(self.start_epoch_ms / 1000, tz=timezone.utc)

    @property
    def end(self) -> datetime:
        return datetime.fromtimestamp(self.end_epoch_ms / 1000, tz=timezone.utc)


def compute_window(days_back: int, now: datetime | None = None) -> ActivityWindow:
    """
    Build the window covering the last `days_back` days.

    Args:
        days_back: Non-negative number of whole days to look back
        now: Anchor time (defaults to the current UTC time)

    Returns:
        ActivityWindow ending at `now`

    Raises:
        ConfigError: If days_back is negative or not an integer
    """
    # bool is an int subclass but never a valid day count
    if isinstance(days_back, bool) or not isinstance(days_back, int) or days_back < 0:
        raise ConfigError(
            "days_back must be a non-negative integer",
            days_back=days_back,
        )

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    end_epoch_ms = int(current.timestamp() * 1000)
    window = ActivityWindow(
        start_epoch_ms=end_epoch_ms - days_back * MS_PER_DAY,
        end_epoch_ms=end_epoch_ms,
        days_back=days_back,
    )

    log.debug(
        "activity_window_computed",
        days_back=days_back,
        start=window.start.isoformat(),
        end=window.end.isoformat(),
    )

    return window
