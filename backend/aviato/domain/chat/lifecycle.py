"""Conversation lifecycle transitions over immutable snapshots.

Each conversation moves ``NoTimer -> Active -> (Expired | Rated)``. Outbound
messages start a new timer cycle when there is none, when the previous cycle
was rated, or when the previous deadline already passed; otherwise they
accumulate under the running deadline. Inbound messages never touch the timer.
Expiry is never stored, readers derive it from ``timer_started`` (see
``aviato.domain.chat.timers``).

The owning list is kept in most-recent-activity order: every send or receive
moves the conversation to the front.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional, Tuple

from aviato.domain.availability.models import AvailabilityMode
from aviato.domain.chat.exceptions import (
	ConversationAlreadyRated,
	ConversationNotFound,
	ConversationNotRateable,
	EmptyMessage,
)
from aviato.domain.chat.models import TIMER_DURATION_MS, Conversation, Message, RatingType

Conversations = Tuple[Conversation, ...]

OUTBOUND_PREFIX = "You: "


def _new_id() -> str:
	return str(uuid.uuid4())


def find_index(conversations: Conversations, user_id: str) -> int:
	for idx, conversation in enumerate(conversations):
		if conversation.user_id == user_id:
			return idx
	return -1


def find_conversation(conversations: Conversations, user_id: str) -> Optional[Conversation]:
	idx = find_index(conversations, user_id)
	return conversations[idx] if idx >= 0 else None


def _require_index(conversations: Conversations, user_id: str) -> int:
	idx = find_index(conversations, user_id)
	if idx < 0:
		raise ConversationNotFound()
	return idx


def move_to_front(conversations: Conversations, idx: int, updated: Conversation) -> Conversations:
	"""Replace the entry at ``idx`` with ``updated`` and splice it to the front."""
	rest = conversations[:idx] + conversations[idx + 1 :]
	return (updated,) + rest


def start_conversation(
	conversations: Conversations,
	user_id: str,
	*,
	now: int,
	previous_mode: Optional[AvailabilityMode] = None,
) -> Tuple[Conversations, Conversation, bool]:
	"""Return ``(conversations, conversation, created)``.

	An existing conversation is returned untouched; opening a chat never
	starts or restarts the timer.
	"""
	existing = find_conversation(conversations, user_id)
	if existing is not None:
		return conversations, existing, False
	conversation = Conversation(
		id=_new_id(),
		user_id=user_id,
		last_message_time=now,
		previous_mode=previous_mode,
	)
	return (conversation,) + conversations, conversation, True


def starts_new_cycle(conversation: Conversation, now: int) -> bool:
	if conversation.timer_started is None or conversation.rated:
		return True
	return now - conversation.timer_started >= TIMER_DURATION_MS


def send_message(
	conversations: Conversations,
	owner_id: Optional[str],
	user_id: str,
	text: str,
	*,
	now: int,
) -> Conversations:
	if owner_id is None:
		return conversations
	if not text or not text.strip():
		raise EmptyMessage()
	idx = _require_index(conversations, user_id)
	conversation = conversations[idx]
	message = Message(message_id=_new_id(), sender_id=owner_id, text=text, timestamp=now)

	timer_started = conversation.timer_started
	rated = conversation.rated
	rating_type = conversation.rating_type
	rating_reason = conversation.rating_reason
	if starts_new_cycle(conversation, now):
		timer_started = now
		rated = False
		rating_type = None
		rating_reason = None

	updated = replace(
		conversation,
		messages=conversation.messages + (message,),
		last_message=f"{OUTBOUND_PREFIX}{text}",
		last_message_time=now,
		last_message_sender_id=owner_id,
		waiting_for_response=True,
		they_responded_last=False,
		timer_started=timer_started,
		rated=rated,
		rating_type=rating_type,
		rating_reason=rating_reason,
		timer_expired=False,
	)
	return move_to_front(conversations, idx, updated)


def receive_message(
	conversations: Conversations,
	owner_id: Optional[str],
	user_id: str,
	text: str,
	*,
	now: int,
) -> Conversations:
	idx = _require_index(conversations, user_id)
	conversation = conversations[idx]
	seen_messages = tuple(
		replace(msg, seen=True) if owner_id is not None and msg.sender_id == owner_id and not msg.seen else msg
		for msg in conversation.messages
	)
	message = Message(message_id=_new_id(), sender_id=user_id, text=text, timestamp=now)
	updated = replace(
		conversation,
		messages=seen_messages + (message,),
		has_other_user_replied=True,
		last_message=text,
		last_message_time=now,
		last_message_sender_id=user_id,
		waiting_for_response=False,
		they_responded_last=True,
	)
	return move_to_front(conversations, idx, updated)


def mark_rated(
	conversations: Conversations,
	user_id: str,
	is_good: bool,
	reason: Optional[str] = None,
) -> Conversations:
	"""Close the current timer cycle with a rating; list order is unchanged."""
	idx = _require_index(conversations, user_id)
	conversation = conversations[idx]
	if conversation.rated:
		raise ConversationAlreadyRated()
	if conversation.timer_started is None:
		raise ConversationNotRateable()
	updated = replace(
		conversation,
		rated=True,
		timer_expired=True,
		rating_type=RatingType.GOOD if is_good else RatingType.BAD,
		rating_reason=reason,
	)
	return conversations[:idx] + (updated,) + conversations[idx + 1 :]
