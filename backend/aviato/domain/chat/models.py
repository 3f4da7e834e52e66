"""Domain models for per-user conversations and their response timer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from aviato.domain.availability.models import AvailabilityMode

# Response deadline per timer cycle; a fixed contract value
TIMER_DURATION_MS = 120_000


class TimerState(str, Enum):
	"""Derived state of a conversation's response timer at a given instant."""

	NO_TIMER = "no_timer"
	ACTIVE = "active"
	EXPIRED = "expired"
	RATED = "rated"


class RatingType(str, Enum):
	GOOD = "good"
	BAD = "bad"


@dataclass(frozen=True, slots=True)
class Message:
	message_id: str
	sender_id: str
	text: str
	timestamp: int
	seen: bool = False


@dataclass(frozen=True, slots=True)
class Conversation:
	"""Conversation between the session owner and ``user_id``."""

	id: str
	user_id: str
	messages: Tuple[Message, ...] = ()
	timer_started: Optional[int] = None
	timer_expired: bool = False
	rated: bool = False
	rating_type: Optional[RatingType] = None
	rating_reason: Optional[str] = None
	has_other_user_replied: bool = False
	waiting_for_response: bool = False
	they_responded_last: bool = False
	last_message: str = ""
	last_message_time: Optional[int] = None
	last_message_sender_id: Optional[str] = None
	previous_mode: Optional[AvailabilityMode] = None

	@property
	def has_messages(self) -> bool:
		return bool(self.messages)


@dataclass(frozen=True, slots=True)
class TimerSnapshot:
	"""Display-side view of a conversation's timer, recomputed on every tick."""

	conversation_id: str
	user_id: str
	state: TimerState
	remaining_ms: int
	formatted: str
	urgency: str
