"""Read-side helpers deriving timer display state from ``(conversation, now)``."""

from __future__ import annotations

from typing import Iterable, Optional

from aviato.domain.availability.models import AvailabilityMode, AvailabilityStatus
from aviato.domain.chat.models import TIMER_DURATION_MS, Conversation, TimerSnapshot, TimerState

CRITICAL_MS = 10_000
WARNING_MS = 30_000

_MODE_STATUS = {
	AvailabilityMode.RED: "🔒 User locked messaging",
	AvailabilityMode.GRAY: "⏸️ User paused messaging",
	AvailabilityMode.ORANGE: "👥 Max contacts reached",
}


def remaining_ms(conversation: Conversation, now: int) -> int:
	if conversation.timer_started is None or conversation.rated:
		return 0
	return max(0, TIMER_DURATION_MS - (now - conversation.timer_started))


def is_expired(conversation: Conversation, now: int) -> bool:
	if conversation.timer_started is None:
		return False
	return now - conversation.timer_started >= TIMER_DURATION_MS


def timer_state(conversation: Conversation, now: int) -> TimerState:
	if conversation.rated:
		return TimerState.RATED
	if conversation.timer_started is None:
		return TimerState.NO_TIMER
	if is_expired(conversation, now):
		return TimerState.EXPIRED
	return TimerState.ACTIVE


def format_duration(ms: Optional[int]) -> str:
	"""Render ``ms`` as ``MM:SS``, rounding partial seconds up."""
	if ms is None:
		return "00:00"
	total_seconds = max(0, -(-int(ms) // 1000))
	minutes, seconds = divmod(total_seconds, 60)
	return f"{minutes:02d}:{seconds:02d}"


def urgency(remaining: int) -> str:
	if remaining <= CRITICAL_MS:
		return "critical"
	if remaining <= WARNING_MS:
		return "warning"
	return "normal"


def snapshot(conversation: Conversation, now: int) -> TimerSnapshot:
	remaining = remaining_ms(conversation, now)
	return TimerSnapshot(
		conversation_id=conversation.id,
		user_id=conversation.user_id,
		state=timer_state(conversation, now),
		remaining_ms=remaining,
		formatted=format_duration(remaining),
		urgency=urgency(remaining),
	)


def snapshots(conversations: Iterable[Conversation], now: int) -> list[TimerSnapshot]:
	return [snapshot(conversation, now) for conversation in conversations]


def _mode_status_text(mode: Optional[AvailabilityMode], status: AvailabilityStatus) -> Optional[str]:
	if mode in _MODE_STATUS:
		return _MODE_STATUS[mode]
	if mode is AvailabilityMode.BLUE:
		return f"📅 {status.status_text}"
	if mode is AvailabilityMode.BROWN:
		return f"🕐 {status.status_text}"
	return None


def describe_conversation(
	conversation: Conversation,
	other_mode: Optional[AvailabilityMode],
	other_status: AvailabilityStatus,
	now: int,
) -> str:
	"""Status line for a conversation list entry.

	A pending, unrated expiry always wins; otherwise an unavailable other party
	shows its mode status instead of the timer.
	"""
	state = timer_state(conversation, now)
	if state is TimerState.EXPIRED:
		return "⌛ Expired • Rate pending"
	mode_text = None if other_status.available else _mode_status_text(other_mode, other_status)
	if mode_text:
		return mode_text
	if state is TimerState.RATED:
		return "✓ Rated"
	if state is TimerState.NO_TIMER:
		return "⏸ Waiting to start"
	return f"⏱️ {format_duration(remaining_ms(conversation, now))} remaining"
