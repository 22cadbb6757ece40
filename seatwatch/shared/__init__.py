# Shared Infrastructure for Seat Watch
"""
Shared infrastructure components for the inactive license checker.

This package provides:
- Configuration management
- Custom exceptions
- Activity window calculation
- Pydantic models for identities and activity records
- Tool implementations for Secrets Manager, HTTP and Slack
"""

from seatwatch.shared.config import Settings, get_settings, load_settings
from seatwatch.shared.exceptions import (
    AuthError,
    ConfigError,
    NotFoundError,
    SeatWatchError,
    SourceError,
    TransportError,
)
from seatwatch.shared.windows import ActivityWindow, compute_window

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "load_settings",
    # Exceptions
    "SeatWatchError",
    "ConfigError",
    "SourceError",
    "AuthError",
    "NotFoundError",
    "TransportError",
    # Windows
    "ActivityWindow",
    "compute_window",
]
