"""Apply a conversation rating to the rated user's approval score.

The approval change and the conversation's ``mark_rated`` transition are
computed together and returned as one outcome: either both apply or the call
raises and nothing does. A conversation accepts one rating per timer cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from aviato.domain.chat import lifecycle
from aviato.domain.chat.exceptions import ConversationAlreadyRated, ConversationNotFound
from aviato.domain.chat.models import Conversation
from aviato.domain.common.exceptions import UserNotFound
from aviato.domain.ratings.policy import approval_delta
from aviato.domain.users.models import User, find_user, replace_user


@dataclass(frozen=True, slots=True)
class RatingOutcome:
    delta: int
    target: User
    users: Tuple[User, ...]
    conversations: Tuple[Conversation, ...]


def apply_approval(user: User, delta: int) -> User:
    """Approval is unbounded and may go negative."""
    return replace(user, approval_rating=user.approval_rating + delta)


def can_rate(conversation: Optional[Conversation]) -> bool:
    return conversation is not None and conversation.timer_started is not None and not conversation.rated


def apply_rating(
    users: Tuple[User, ...],
    conversations: Tuple[Conversation, ...],
    target_user_id: str,
    is_good: bool,
    reason: Optional[str] = None,
) -> RatingOutcome:
    conversation = lifecycle.find_conversation(conversations, target_user_id)
    if conversation is None:
        raise ConversationNotFound()
    if conversation.rated:
        raise ConversationAlreadyRated()
    target = find_user(users, target_user_id)
    if target is None:
        raise UserNotFound()

    next_conversations = lifecycle.mark_rated(conversations, target_user_id, is_good, reason)
    delta = approval_delta(is_good, reason)
    updated = apply_approval(target, delta)
    return RatingOutcome(
        delta=delta,
        target=updated,
        users=replace_user(users, updated),
        conversations=next_conversations,
    )
