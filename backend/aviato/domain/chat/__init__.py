"""Chat domain exports."""

from .models import TIMER_DURATION_MS, Conversation, Message, RatingType, TimerSnapshot, TimerState  # noqa: F401
