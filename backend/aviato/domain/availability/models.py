"""Domain models for availability modes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class AvailabilityMode(str, Enum):
    """Mutually exclusive modes a user can declare; ``None`` means invisible."""

    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"
    GRAY = "gray"
    BROWN = "brown"


@dataclass(frozen=True, slots=True)
class BlueSettings:
    """Closed until ``open_date`` (epoch ms)."""

    open_date: Optional[int] = None


@dataclass(frozen=True, slots=True)
class YellowSettings:
    """Open for ``later_minutes`` after ``later_start_time`` (epoch ms)."""

    later_minutes: int = 0
    later_start_time: Optional[int] = None


@dataclass(frozen=True, slots=True)
class OrangeSettings:
    max_contact: int = 5
    current_contacts: int = 0


@dataclass(frozen=True, slots=True)
class BrownSettings:
    """Open from ``timed_hour:timed_minute`` of the current local day."""

    timed_hour: Optional[int] = None
    timed_minute: Optional[int] = None


ModeSettings = Union[BlueSettings, YellowSettings, OrangeSettings, BrownSettings]

SETTINGS_BY_MODE: dict[AvailabilityMode, type] = {
    AvailabilityMode.BLUE: BlueSettings,
    AvailabilityMode.YELLOW: YellowSettings,
    AvailabilityMode.ORANGE: OrangeSettings,
    AvailabilityMode.BROWN: BrownSettings,
}


@dataclass(frozen=True, slots=True)
class AvailabilityStatus:
    """Point-in-time answer to "can this user be messaged now"."""

    available: bool
    status_text: str
    reason: str
    mode_color: str


@dataclass(frozen=True, slots=True)
class ModeInfo:
    name: str
    description: str
    icon: str
    color: str


@dataclass(frozen=True, slots=True)
class CurrentMode:
    display_mode: Optional[AvailabilityMode]
    can_message: bool
    status_text: str


MODE_INFO: dict[AvailabilityMode, ModeInfo] = {
    AvailabilityMode.GREEN: ModeInfo("Available Mode", "Online and ready to chat", "🟢", "#10B981"),
    AvailabilityMode.BLUE: ModeInfo("Open Mode", "Available from specific date", "🔵", "#0066FF"),
    AvailabilityMode.YELLOW: ModeInfo("Later Mode", "Available for limited duration", "🟡", "#FBBF24"),
    AvailabilityMode.ORANGE: ModeInfo("Max Contact Mode", "Limit number of contacts", "🟠", "#F97316"),
    AvailabilityMode.RED: ModeInfo("Locked Mode", "Completely unavailable", "🔴", "#DC2626"),
    AvailabilityMode.GRAY: ModeInfo("Pause Mode", "Temporarily paused", "⚪", "#9CA3AF"),
    AvailabilityMode.BROWN: ModeInfo("Timed Mode", "Available at specific time", "🟤", "#92400E"),
}

INVISIBLE_COLOR = "#6B7280"
MINUTE_MS = 60_000


def mode_color(mode: Optional[AvailabilityMode]) -> str:
    if mode is None:
        return INVISIBLE_COLOR
    return MODE_INFO[mode].color


def mode_name(mode: Optional[AvailabilityMode]) -> str:
    if mode is None:
        return "Invisible"
    info = MODE_INFO.get(mode)
    return info.name if info else "Unknown Mode"


def parse_mode(value: object) -> Optional[AvailabilityMode]:
    """Map a raw persisted value to a mode; unknown values read as invisible."""
    if value is None or isinstance(value, AvailabilityMode):
        return value
    try:
        return AvailabilityMode(str(value).strip().lower())
    except ValueError:
        return None
