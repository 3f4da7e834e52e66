"""Domain-level exceptions for availability mode changes."""

from __future__ import annotations

from aviato.domain.common.exceptions import AviatoError


class AvailabilityError(AviatoError):
    """Base class for availability mode errors."""


class ModeAlreadyActive(AvailabilityError):
    reason = "mode_already_active"


class InvalidModeSettings(AvailabilityError):
    reason = "invalid_mode_settings"


class TargetUnavailable(AvailabilityError):
    reason = "target_unavailable"
