"""Exceptions raised by the Teams sink pipeline."""

from __future__ import annotations

from typing import Optional


class TeamsSinkError(RuntimeError):
    """Base class for all sink failures."""


class TransportError(TeamsSinkError):
    """Raised when the webhook request could not complete (DNS, refused connection, TLS)."""


class DeliveryFailed(TeamsSinkError):
    """Raised when the webhook answers with a non-success status code."""

    def __init__(self, status_code: int, body: Optional[str] = None) -> None:
        message = f"Received failed result {status_code} when posting events to Microsoft Teams"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedEventError(TeamsSinkError):
    """Raised when a log record cannot be turned into a LogEvent."""
