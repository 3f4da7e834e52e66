"""Pydantic records for persisted conversations."""

from __future__ import annotations

import logging
from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from aviato.domain.availability.models import parse_mode
from aviato.domain.chat.models import Conversation, Message, RatingType

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class MessageRecord(_CamelModel):
	message_id: str = Field(alias="id")
	sender_id: str
	text: str = ""
	timestamp: int
	seen: bool = False

	@field_validator("message_id", "sender_id", mode="before")
	def _stringify(cls, value):  # type: ignore[override]
		return str(value) if value is not None else value

	@field_validator("seen", mode="before")
	def _false_when_null(cls, value):  # type: ignore[override]
		return bool(value)


class ConversationRecord(_CamelModel):
	id: str
	user_id: str
	messages: List[MessageRecord] = Field(default_factory=list)
	timer_started: Optional[int] = None
	timer_expired: bool = False
	rated: bool = False
	rating_type: Optional[Literal["good", "bad"]] = None
	rating_reason: Optional[str] = None
	has_other_user_replied: bool = False
	waiting_for_response: bool = False
	they_responded_last: bool = False
	last_message: str = ""
	last_message_time: Optional[int] = None
	last_message_sender_id: Optional[str] = None
	previous_mode: Optional[str] = None

	@field_validator("id", "user_id", mode="before")
	def _stringify(cls, value):  # type: ignore[override]
		return str(value) if value is not None else value

	def to_domain(self) -> Conversation:
		return Conversation(
			id=self.id,
			user_id=self.user_id,
			messages=tuple(
				Message(
					message_id=m.message_id,
					sender_id=m.sender_id,
					text=m.text,
					timestamp=m.timestamp,
					seen=m.seen,
				)
				for m in self.messages
			),
			timer_started=self.timer_started,
			timer_expired=self.timer_expired,
			rated=self.rated,
			rating_type=RatingType(self.rating_type) if self.rating_type else None,
			rating_reason=self.rating_reason,
			has_other_user_replied=self.has_other_user_replied,
			waiting_for_response=self.waiting_for_response,
			they_responded_last=self.they_responded_last,
			last_message=self.last_message,
			last_message_time=self.last_message_time,
			last_message_sender_id=self.last_message_sender_id,
			previous_mode=parse_mode(self.previous_mode),
		)

	@classmethod
	def from_domain(cls, conversation: Conversation) -> "ConversationRecord":
		return cls(
			id=conversation.id,
			user_id=conversation.user_id,
			messages=[
				MessageRecord(
					message_id=m.message_id,
					sender_id=m.sender_id,
					text=m.text,
					timestamp=m.timestamp,
					seen=m.seen,
				)
				for m in conversation.messages
			],
			timer_started=conversation.timer_started,
			timer_expired=conversation.timer_expired,
			rated=conversation.rated,
			rating_type=conversation.rating_type.value if conversation.rating_type else None,
			rating_reason=conversation.rating_reason,
			has_other_user_replied=conversation.has_other_user_replied,
			waiting_for_response=conversation.waiting_for_response,
			they_responded_last=conversation.they_responded_last,
			last_message=conversation.last_message,
			last_message_time=conversation.last_message_time,
			last_message_sender_id=conversation.last_message_sender_id,
			previous_mode=conversation.previous_mode.value if conversation.previous_mode else None,
		)


def dump_conversations(conversations: Tuple[Conversation, ...]) -> list[dict[str, Any]]:
	return [
		ConversationRecord.from_domain(conversation).model_dump(by_alias=True, mode="json")
		for conversation in conversations
	]


def load_conversations(payload: Any) -> Tuple[Conversation, ...]:
	"""Rebuild the owning list, dropping invalid and duplicate-peer records."""
	if not isinstance(payload, list):
		return ()
	result: list[Conversation] = []
	seen_peers: set[str] = set()
	for item in payload:
		if not isinstance(item, dict):
			continue
		try:
			conversation = ConversationRecord.model_validate(item).to_domain()
		except ValidationError as exc:
			logger.warning("dropping invalid persisted conversation", extra={"errors": exc.error_count()})
			continue
		if conversation.user_id in seen_peers:
			continue
		seen_peers.add(conversation.user_id)
		result.append(conversation)
	return tuple(result)
