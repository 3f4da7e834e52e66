"""Domain-level exceptions for conversations and their rating cycle."""

from __future__ import annotations

from aviato.domain.common.exceptions import AviatoError


class ConversationError(AviatoError):
    """Base class for conversation errors."""


class ConversationNotFound(ConversationError):
    reason = "conversation_not_found"


class ConversationAlreadyRated(ConversationError):
    reason = "already_rated"


class ConversationNotRateable(ConversationError):
    reason = "no_timer_cycle"


class EmptyMessage(ConversationError):
    reason = "empty_message"
