"""Availability domain exports."""

from .models import (  # noqa: F401
	AvailabilityMode,
	AvailabilityStatus,
	BlueSettings,
	BrownSettings,
	ModeSettings,
	OrangeSettings,
	YellowSettings,
)
