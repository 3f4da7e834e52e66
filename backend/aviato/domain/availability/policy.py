"""Companion mutators for availability modes and guard checks on their settings."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from aviato.domain.availability.exceptions import InvalidModeSettings, ModeAlreadyActive
from aviato.domain.availability.models import (
    SETTINGS_BY_MODE,
    AvailabilityMode,
    BlueSettings,
    BrownSettings,
    ModeSettings,
    OrangeSettings,
    YellowSettings,
)
from aviato.domain.users.models import User


def validate_settings(mode: AvailabilityMode, mode_settings: Optional[ModeSettings]) -> None:
    expected = SETTINGS_BY_MODE.get(mode)
    if expected is None:
        if mode_settings is not None:
            raise InvalidModeSettings("unexpected_settings")
        return
    if not isinstance(mode_settings, expected):
        raise InvalidModeSettings("settings_mismatch")
    if isinstance(mode_settings, BlueSettings):
        if mode_settings.open_date is None:
            raise InvalidModeSettings("open_date_required")
    elif isinstance(mode_settings, YellowSettings):
        if mode_settings.later_minutes <= 0:
            raise InvalidModeSettings("later_minutes_positive")
    elif isinstance(mode_settings, OrangeSettings):
        if mode_settings.max_contact <= 0:
            raise InvalidModeSettings("max_contact_positive")
        if mode_settings.current_contacts < 0:
            raise InvalidModeSettings("current_contacts_negative")
    elif isinstance(mode_settings, BrownSettings):
        if mode_settings.timed_hour is None or not 0 <= mode_settings.timed_hour <= 23:
            raise InvalidModeSettings("timed_hour_range")
        if not 0 <= (mode_settings.timed_minute or 0) <= 59:
            raise InvalidModeSettings("timed_minute_range")


def set_availability_mode(
    user: User,
    mode: Optional[AvailabilityMode],
    mode_settings: Optional[ModeSettings] = None,
    *,
    now: int,
) -> User:
    """Return ``user`` switched to ``mode``; ``mode=None`` makes the user invisible.

    Re-activating the active mode is only accepted with new settings (an edit).
    Yellow windows start at ``now`` unless the caller already stamped them.
    """
    if mode is None:
        if user.availability_mode is None:
            raise ModeAlreadyActive("already_invisible")
        return replace(user, availability_mode=None, availability_settings=None)

    if mode == user.availability_mode and mode_settings is None:
        raise ModeAlreadyActive()
    validate_settings(mode, mode_settings)
    if isinstance(mode_settings, YellowSettings) and mode_settings.later_start_time is None:
        mode_settings = replace(mode_settings, later_start_time=now)
    return replace(user, availability_mode=mode, availability_settings=mode_settings)


def register_contact(user: User) -> User:
    """Count a newly started conversation against an orange user's contact limit."""
    if user.availability_mode is not AvailabilityMode.ORANGE:
        return user
    orange = user.availability_settings
    if not isinstance(orange, OrangeSettings):
        orange = OrangeSettings()
    return replace(user, availability_settings=replace(orange, current_contacts=orange.current_contacts + 1))
