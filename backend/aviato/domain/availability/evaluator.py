"""Pure evaluation of a user's declared availability mode.

``evaluate`` is a point-in-time snapshot: it never mutates the user (in
particular it never touches orange ``current_contacts``) and is safe to call
on every render or poll tick.
"""

from __future__ import annotations

from datetime import datetime, time, tzinfo
from typing import Iterable, Optional, TypeVar

from aviato.domain.availability.models import (
    MINUTE_MS,
    AvailabilityMode,
    AvailabilityStatus,
    BlueSettings,
    BrownSettings,
    CurrentMode,
    OrangeSettings,
    YellowSettings,
    mode_color,
)
from aviato.domain.users.models import User, find_user
from aviato.settings import settings

_S = TypeVar("_S")


def local_datetime(now_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    zone = tz if tz is not None else settings.tz()
    if zone is None:
        return datetime.fromtimestamp(now_ms / 1000)
    return datetime.fromtimestamp(now_ms / 1000, tz=zone)


def format_date(value_ms: int, tz: Optional[tzinfo] = None) -> str:
    moment = local_datetime(value_ms, tz)
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_clock(hour: int, minute: int | None) -> str:
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{(minute or 0):02d} {period}"


def _settings(user: User, kind: type[_S]) -> _S:
    current = user.availability_settings
    return current if isinstance(current, kind) else kind()


def _status(mode: Optional[AvailabilityMode], available: bool, text: str, reason: str) -> AvailabilityStatus:
    return AvailabilityStatus(available=available, status_text=text, reason=reason, mode_color=mode_color(mode))


def _evaluate_blue(user: User, now: int, tz: Optional[tzinfo]) -> AvailabilityStatus:
    blue = _settings(user, BlueSettings)
    mode = AvailabilityMode.BLUE
    if blue.open_date is None:
        return _status(mode, False, "Opening date not set", "open_date_missing")
    if now >= blue.open_date:
        return _status(mode, True, "Open", "open")
    return _status(mode, False, f"Opens {format_date(blue.open_date, tz)}", "before_open_date")


def _evaluate_yellow(user: User, now: int) -> AvailabilityStatus:
    yellow = _settings(user, YellowSettings)
    mode = AvailabilityMode.YELLOW
    minutes = max(0, int(yellow.later_minutes or 0))
    if yellow.later_start_time is None:
        # Not started yet: treated as open until the window is stamped
        text = f"Expires in {minutes} minutes" if minutes else "Available"
        return _status(mode, True, text, "window_not_started")
    elapsed = now - yellow.later_start_time
    if elapsed < minutes * MINUTE_MS:
        remaining = max(0, minutes - elapsed // MINUTE_MS)
        return _status(mode, True, f"Expires in {remaining} minutes", "window_open")
    return _status(mode, False, "Expired", "expired")


def _evaluate_orange(user: User) -> AvailabilityStatus:
    orange = _settings(user, OrangeSettings)
    mode = AvailabilityMode.ORANGE
    if orange.current_contacts < orange.max_contact:
        remaining = orange.max_contact - orange.current_contacts
        return _status(mode, True, f"{remaining} of {orange.max_contact} slots left", "slots_available")
    return _status(mode, False, "Max contacts reached", "max_contacts_reached")


def _evaluate_brown(user: User, now: int, tz: Optional[tzinfo]) -> AvailabilityStatus:
    brown = _settings(user, BrownSettings)
    mode = AvailabilityMode.BROWN
    if brown.timed_hour is None:
        return _status(mode, False, "Opening time not set", "timed_hour_missing")
    minute = brown.timed_minute or 0
    if not (0 <= brown.timed_hour <= 23 and 0 <= minute <= 59):
        return _status(mode, False, "Opening time not set", "timed_hour_invalid")
    opens_at = time(hour=brown.timed_hour, minute=minute)
    if local_datetime(now, tz).time() >= opens_at:
        return _status(mode, True, "Available", "after_opening_time")
    return _status(
        mode,
        False,
        f"Available at {format_clock(brown.timed_hour, brown.timed_minute)}",
        "before_opening_time",
    )


def evaluate(user: User, now: int, *, tz: Optional[tzinfo] = None) -> AvailabilityStatus:
    """Derive whether ``user`` can be messaged at ``now`` (epoch ms)."""
    if user.is_invisible:
        return _status(None, False, "Invisible", "invisible")
    mode = user.availability_mode
    if mode is AvailabilityMode.GREEN:
        return _status(mode, True, "Available", "open")
    if mode is AvailabilityMode.RED:
        return _status(mode, False, "Locked", "locked")
    if mode is AvailabilityMode.GRAY:
        return _status(mode, False, "Paused", "paused")
    if mode is AvailabilityMode.BLUE:
        return _evaluate_blue(user, now, tz)
    if mode is AvailabilityMode.YELLOW:
        return _evaluate_yellow(user, now)
    if mode is AvailabilityMode.ORANGE:
        return _evaluate_orange(user)
    return _evaluate_brown(user, now, tz)


def settings_summary(user: User, now: int, *, tz: Optional[tzinfo] = None) -> Optional[str]:
    """Short description of the active mode's settings for profile display."""
    mode = user.availability_mode
    if mode is AvailabilityMode.GREEN:
        return "Visible to everyone"
    if mode is AvailabilityMode.RED:
        return "All messaging blocked"
    if mode is AvailabilityMode.GRAY:
        return "Messaging paused"
    if mode is AvailabilityMode.BLUE:
        blue = _settings(user, BlueSettings)
        return f"Opens {format_date(blue.open_date, tz)}" if blue.open_date is not None else None
    if mode is AvailabilityMode.YELLOW:
        yellow = _settings(user, YellowSettings)
        if yellow.later_start_time is not None:
            elapsed_minutes = (now - yellow.later_start_time) // MINUTE_MS
            return f"Expires in {max(0, yellow.later_minutes - elapsed_minutes)} minutes"
        return f"Expires in {yellow.later_minutes} minutes" if yellow.later_minutes else None
    if mode is AvailabilityMode.ORANGE:
        orange = _settings(user, OrangeSettings)
        return f"{orange.current_contacts}/{orange.max_contact} slots available"
    if mode is AvailabilityMode.BROWN:
        brown = _settings(user, BrownSettings)
        if brown.timed_hour is None:
            return None
        return f"Opens at {format_clock(brown.timed_hour, brown.timed_minute)}"
    return None


def current_mode(
    users: Iterable[User],
    user_id: str,
    now: int,
    *,
    tz: Optional[tzinfo] = None,
) -> CurrentMode:
    user = find_user(tuple(users), user_id)
    if user is None:
        return CurrentMode(display_mode=AvailabilityMode.GRAY, can_message=False, status_text="Unknown")
    status = evaluate(user, now, tz=tz)
    return CurrentMode(display_mode=user.availability_mode, can_message=status.available, status_text=status.status_text)
