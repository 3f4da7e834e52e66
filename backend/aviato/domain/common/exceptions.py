"""Base error type shared by the engine's domain features."""

from __future__ import annotations


class AviatoError(Exception):
    """Base class for rule violations; the session layer turns these into no-ops."""

    reason: str = "unknown"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class UserNotFound(AviatoError):
    reason = "user_not_found"


class NotAuthenticated(AviatoError):
    reason = "not_authenticated"
