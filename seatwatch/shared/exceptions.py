"""
Custom Exceptions for Seat Watch

All exceptions carry the context needed for structured logging.
ConfigError is fatal; the SourceError family is contained per vendor
(or per identity, for chat calls) by the orchestrator and dispatcher.
"""

from dataclasses import dataclass
from typing import Any


class SeatWatchError(Exception):
    """Base exception for the inactive license checker."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(SeatWatchError):
    """Invalid configuration or secrets. Aborts the run before any I/O."""


@dataclass
class SourceError(SeatWatchError):
    """A call to an external service (vendor API or chat API) failed."""

    service: str
    operation: str
    status_code: int | None = None

    def __init__(
        self,
        service: str,
        operation: str,
        error_message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.operation = operation
        self.status_code = status_code
        super().__init__(
            f"{service} {operation} failed: {error_message or 'Unknown error'}",
            service=service,
            operation=operation,
            status_code=status_code,
        )


class AuthError(SourceError):
    """Credentials rejected or insufficient permission (401/403)."""


class NotFoundError(SourceError):
    """Organization, team, or resource does not exist (404)."""


class TransportError(SourceError):
    """Network failure, unexpected status, or malformed response."""
