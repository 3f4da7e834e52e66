"""Explicit application state passed through the session service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from aviato.domain.chat.models import Conversation
from aviato.domain.users.models import User, find_user


@dataclass(frozen=True, slots=True)
class AppState:
	current_user_id: Optional[str] = None
	users: Tuple[User, ...] = ()
	conversations: Tuple[Conversation, ...] = ()
	selections: Tuple[str, ...] = ()

	@property
	def current_user(self) -> Optional[User]:
		return find_user(self.users, self.current_user_id)
