"""Session service: the single writer of application state.

Every mutating entry point computes the next ``AppState`` with the pure domain
functions, swaps it in, persists the touched records, and only then notifies.
Domain rule violations never escape: they are logged, surfaced through the
notification sink, and the call returns ``None`` without mutating anything.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import tzinfo
from typing import Iterable, Iterator, Optional, Tuple

from aviato.domain.availability import evaluator, policy as availability_policy
from aviato.domain.availability.exceptions import TargetUnavailable
from aviato.domain.availability.models import AvailabilityMode, AvailabilityStatus, CurrentMode, ModeSettings
from aviato.domain.chat import lifecycle, timers
from aviato.domain.chat.models import Conversation, TimerSnapshot
from aviato.domain.chat.schemas import dump_conversations, load_conversations
from aviato.domain.common.exceptions import AviatoError, NotAuthenticated, UserNotFound
from aviato.domain.matching import service as matching
from aviato.domain.ratings import engine as ratings
from aviato.domain.reviews import aggregator as reviews
from aviato.domain.session.notifications import LoggingNotificationSink, NotificationSink, Severity, safe_notify
from aviato.domain.session.state import AppState
from aviato.domain.users.models import User, find_user, replace_user
from aviato.domain.users.schemas import dump_user, dump_users, load_user, load_users
from aviato.infra.clock import Clock, system_clock
from aviato.infra.persistence import PersistenceGateway, StoreKey, build_gateway
from aviato.obs import logging as obs_logging
from aviato.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


_REJECTION_MESSAGES = {
    "not_authenticated": "Sign in first",
    "user_not_found": "User not found",
    "conversation_not_found": "Conversation not found",
    "already_rated": "This conversation has already been rated",
    "no_timer_cycle": "Send a message before rating this conversation",
    "empty_message": "Message is empty",
    "mode_already_active": "Mode is already active",
    "already_invisible": "You are already invisible",
    "already_reviewed": "You have already reviewed this user",
    "invalid_rating": "Ratings must be between 1 and 5 stars",
    "self_review": "You cannot review yourself",
    "selection_limit": f"You can select up to {matching.MAX_SELECTIONS} interests",
}


@dataclass(frozen=True, slots=True)
class ConversationView:
    conversation: Conversation
    user: Optional[User]
    status_text: str
    timer: TimerSnapshot


class SessionService:
    def __init__(
        self,
        gateway: PersistenceGateway | None = None,
        *,
        clock: Clock | None = None,
        notifier: NotificationSink | None = None,
        seed_users: Iterable[User] = (),
        tz: tzinfo | None = None,
    ) -> None:
        self._gateway = gateway or build_gateway()
        self._clock = clock or system_clock
        self._notifier = notifier or LoggingNotificationSink()
        self._seed_users: Tuple[User, ...] = tuple(seed_users)
        self._tz = tz
        self._state = AppState(users=self._seed_users)
        self._persist_lock = asyncio.Lock()

    # --- State ------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def current_user(self) -> Optional[User]:
        return self._state.current_user

    @property
    def conversations(self) -> Tuple[Conversation, ...]:
        return self._state.conversations

    def now(self) -> int:
        return self._clock.now()

    @contextmanager
    def _action(self, action: str, *, target_user_id: str | None = None) -> Iterator[None]:
        conversation = lifecycle.find_conversation(self._state.conversations, target_user_id) if target_user_id else None
        tokens = obs_logging.bind_context(
            user_id=self._state.current_user_id,
            target_user_id=target_user_id,
            conversation_id=conversation.id if conversation else None,
            action=action,
        )
        try:
            yield
        finally:
            obs_logging.reset_context(tokens)

    def _reject(self, exc: AviatoError) -> None:
        logger.info("session action rejected", extra={"reason": exc.reason})
        safe_notify(self._notifier, _REJECTION_MESSAGES.get(exc.reason, "Action not allowed"), Severity.ERROR)

    def _require_owner(self) -> User:
        owner = self._state.current_user
        if owner is None:
            raise NotAuthenticated()
        return owner

    async def _commit(self, next_state: AppState, *keys: StoreKey) -> None:
        """Swap ``next_state`` in, then persist ``keys`` one commit at a time.

        Records are dumped from the live state at save time, so a commit that
        finishes after a newer one never writes an older snapshot.
        """
        self._state = next_state
        async with self._persist_lock:
            for key in keys:
                await self._persist(key)

    async def _persist(self, key: StoreKey) -> None:
        state = self._state
        if key is StoreKey.CURRENT_USER:
            current = state.current_user
            if current is None:
                await self._gateway.remove(key)
            else:
                await self._gateway.save(key, dump_user(current))
        elif key is StoreKey.USERS:
            await self._gateway.save(key, dump_users(state.users))
        elif key is StoreKey.CONVERSATIONS:
            await self._gateway.save(key, dump_conversations(state.conversations))

    # --- Session ----------------------------------------------------------

    async def load(self) -> AppState:
        """Restore state from the gateway; anything missing or invalid falls back to defaults."""
        users = load_users(await self._gateway.load(StoreKey.USERS)) or self._seed_users
        current = load_user(await self._gateway.load(StoreKey.CURRENT_USER))
        if current is not None:
            users = replace_user(users, current)
        conversations = load_conversations(await self._gateway.load(StoreKey.CONVERSATIONS))
        self._state = AppState(
            current_user_id=current.id if current else None,
            users=users,
            conversations=conversations,
        )
        logger.info(
            "session loaded",
            extra={"users": len(users), "conversations": len(conversations), "signed_in": current is not None},
        )
        return self._state

    async def sign_in(self, user: User) -> User:
        """Make ``user`` the session owner, reusing the directory entry with the same id."""
        existing = find_user(self._state.users, user.id)
        owner = existing or user
        with self._action("sign_in"):
            await self._commit(
                replace(self._state, current_user_id=owner.id, users=replace_user(self._state.users, owner)),
                StoreKey.CURRENT_USER,
                StoreKey.USERS,
            )
            logger.info("signed in")
        return owner

    async def logout(self) -> None:
        with self._action("logout"):
            self._state = AppState(users=self._seed_users)
            async with self._persist_lock:
                for key in (StoreKey.CURRENT_USER, StoreKey.CONVERSATIONS, StoreKey.USERS):
                    await self._gateway.remove(key)
            logger.info("signed out")

    # --- Conversations ----------------------------------------------------

    async def start_chat(self, user_id: str) -> Optional[Conversation]:
        """Open (or return) the conversation with ``user_id``.

        A new conversation is only created while the other user is reachable,
        and counts against an orange user's contact limit.
        """
        with self._action("start_chat", target_user_id=user_id):
            try:
                self._require_owner()
                target = find_user(self._state.users, user_id)
                if target is None:
                    raise UserNotFound()
                existing = lifecycle.find_conversation(self._state.conversations, user_id)
                if existing is not None:
                    return existing
                now = self.now()
                status = evaluator.evaluate(target, now, tz=self._tz)
                if not status.available:
                    raise TargetUnavailable()
                conversations, conversation, _ = lifecycle.start_conversation(
                    self._state.conversations,
                    user_id,
                    now=now,
                    previous_mode=target.availability_mode,
                )
            except TargetUnavailable as exc:
                logger.info("session action rejected", extra={"reason": exc.reason})
                safe_notify(self._notifier, f"{target.name or 'This user'} is not accepting messages", Severity.ERROR)
                return None
            except AviatoError as exc:
                self._reject(exc)
                return None
            users = replace_user(self._state.users, availability_policy.register_contact(target))
            await self._commit(
                replace(self._state, users=users, conversations=conversations),
                StoreKey.USERS,
                StoreKey.CONVERSATIONS,
            )
            logger.info("conversation created", extra={"conversation_id": conversation.id})
            return conversation

    async def send_message(self, user_id: str, text: str) -> Optional[Conversation]:
        owner = self._state.current_user
        if owner is None:
            return None
        with self._action("send_message", target_user_id=user_id):
            now = self.now()
            before = lifecycle.find_conversation(self._state.conversations, user_id)
            try:
                conversations = lifecycle.send_message(self._state.conversations, owner.id, user_id, text, now=now)
            except AviatoError as exc:
                self._reject(exc)
                return None
            if before is not None and lifecycle.starts_new_cycle(before, now):
                obs_metrics.inc_timer_cycle()
            obs_metrics.inc_message("outbound")
            await self._commit(replace(self._state, conversations=conversations), StoreKey.CONVERSATIONS)
            return conversations[0]

    async def receive_message(self, user_id: str, text: str) -> Optional[Conversation]:
        with self._action("receive_message", target_user_id=user_id):
            try:
                conversations = lifecycle.receive_message(
                    self._state.conversations,
                    self._state.current_user_id,
                    user_id,
                    text,
                    now=self.now(),
                )
            except AviatoError as exc:
                self._reject(exc)
                return None
            obs_metrics.inc_message("inbound")
            await self._commit(replace(self._state, conversations=conversations), StoreKey.CONVERSATIONS)
            return conversations[0]

    async def rate_conversation(self, user_id: str, is_good: bool, reason: str | None = None) -> Optional[int]:
        """Rate the current timer cycle; returns the approval delta applied, or None."""
        with self._action("rate_conversation", target_user_id=user_id):
            try:
                self._require_owner()
                outcome = ratings.apply_rating(self._state.users, self._state.conversations, user_id, is_good, reason)
            except AviatoError as exc:
                obs_metrics.inc_rating_rejected(exc.reason)
                self._reject(exc)
                return None
            await self._commit(
                replace(self._state, users=outcome.users, conversations=outcome.conversations),
                StoreKey.USERS,
                StoreKey.CONVERSATIONS,
            )
            obs_metrics.observe_rating("good" if is_good else "bad", outcome.delta)
            logger.info(
                "conversation rated",
                extra={"delta": outcome.delta, "approval_rating": outcome.target.approval_rating},
            )
        if is_good:
            safe_notify(self._notifier, f"Rated positively! +{outcome.delta}% approval", Severity.SUCCESS)
        else:
            safe_notify(self._notifier, f"Rated negatively: {outcome.delta}% approval", Severity.ERROR)
        return outcome.delta

    async def delete_all_chats(self) -> None:
        with self._action("delete_all_chats"):
            await self._commit(replace(self._state, conversations=()), StoreKey.CONVERSATIONS)

    # --- Availability -----------------------------------------------------

    async def set_availability_mode(
        self,
        mode: Optional[AvailabilityMode],
        mode_settings: Optional[ModeSettings] = None,
        *,
        suppress_notification: bool = False,
    ) -> Optional[User]:
        with self._action("set_availability_mode"):
            try:
                owner = self._require_owner()
                updated = availability_policy.set_availability_mode(owner, mode, mode_settings, now=self.now())
            except AviatoError as exc:
                self._reject(exc)
                return None
            await self._commit(
                replace(self._state, users=replace_user(self._state.users, updated)),
                StoreKey.CURRENT_USER,
                StoreKey.USERS,
            )
            obs_metrics.inc_mode_change(mode.value if mode else "invisible")
            logger.info("availability mode changed", extra={"mode": mode.value if mode else None})
        if not suppress_notification:
            safe_notify(self._notifier, "Mode updated", Severity.SUCCESS)
        return updated

    def evaluate_user(self, user_id: str) -> Optional[AvailabilityStatus]:
        user = find_user(self._state.users, user_id)
        if user is None:
            return None
        return evaluator.evaluate(user, self.now(), tz=self._tz)

    def current_mode(self, user_id: str) -> CurrentMode:
        return evaluator.current_mode(self._state.users, user_id, self.now(), tz=self._tz)

    def settings_summary(self) -> Optional[str]:
        owner = self._state.current_user
        if owner is None:
            return None
        return evaluator.settings_summary(owner, self.now(), tz=self._tz)

    # --- Reviews ----------------------------------------------------------

    async def submit_review(self, target_user_id: str, rating: int) -> Optional[User]:
        with self._action("submit_review", target_user_id=target_user_id):
            try:
                owner = self._require_owner()
                target = find_user(self._state.users, target_user_id)
                if target is None:
                    raise UserNotFound()
                updated = reviews.submit_review(target, owner.id, owner.name, rating)
            except AviatoError as exc:
                obs_metrics.inc_review("rejected")
                self._reject(exc)
                return None
            await self._commit(
                replace(self._state, users=replace_user(self._state.users, updated)),
                StoreKey.USERS,
            )
            obs_metrics.inc_review("accepted")
            logger.info("review submitted", extra={"review_count": updated.review_count})
        safe_notify(self._notifier, "Review submitted", Severity.SUCCESS)
        return updated

    def can_view_raters(self, target_user_id: str) -> bool:
        owner = self._state.current_user
        target = find_user(self._state.users, target_user_id)
        if owner is None or target is None:
            return False
        return reviews.can_view_raters(owner.id, target)

    # --- Interests --------------------------------------------------------

    async def update_selections(self, items: Iterable[str]) -> Optional[User]:
        """Replace the owner's profile interests."""
        with self._action("update_selections"):
            try:
                owner = self._require_owner()
                updated = replace(owner, selections=matching.set_selections(items))
            except AviatoError as exc:
                self._reject(exc)
                return None
            await self._commit(
                replace(self._state, users=replace_user(self._state.users, updated)),
                StoreKey.CURRENT_USER,
                StoreKey.USERS,
            )
        safe_notify(self._notifier, "Profile selections updated", Severity.SUCCESS)
        return updated

    def set_match_selections(self, items: Iterable[str]) -> Optional[Tuple[str, ...]]:
        """Replace the in-session match filter; it is never persisted."""
        try:
            selections = matching.set_selections(items)
        except AviatoError as exc:
            self._reject(exc)
            return None
        self._state = replace(self._state, selections=selections)
        return selections

    def add_match_selection(self, item: str) -> Optional[Tuple[str, ...]]:
        try:
            selections = matching.add_selection(self._state.selections, item)
        except AviatoError as exc:
            self._reject(exc)
            return None
        self._state = replace(self._state, selections=selections)
        return selections

    def remove_match_selection(self, item: str) -> Tuple[str, ...]:
        self._state = replace(self._state, selections=matching.remove_selection(self._state.selections, item))
        return self._state.selections

    def find_matches(self) -> list[matching.Match]:
        return matching.find_matches(
            self._state.users,
            self._state.selections,
            exclude_id=self._state.current_user_id,
        )

    # --- Reads ------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        return find_user(self._state.users, user_id)

    def get_conversation(self, user_id: str) -> Optional[Conversation]:
        return lifecycle.find_conversation(self._state.conversations, user_id)

    def can_rate(self, user_id: str) -> bool:
        return ratings.can_rate(self.get_conversation(user_id))

    def timer_snapshots(self) -> list[TimerSnapshot]:
        return timers.snapshots(self._state.conversations, self.now())

    def conversation_views(self) -> list[ConversationView]:
        now = self.now()
        views: list[ConversationView] = []
        for conversation in self._state.conversations:
            user = find_user(self._state.users, conversation.user_id)
            if user is None:
                status = evaluator.evaluate(User(id=conversation.user_id, availability_mode=None), now, tz=self._tz)
                mode = None
            else:
                status = evaluator.evaluate(user, now, tz=self._tz)
                mode = user.availability_mode
            views.append(
                ConversationView(
                    conversation=conversation,
                    user=user,
                    status_text=timers.describe_conversation(conversation, mode, status, now),
                    timer=timers.snapshot(conversation, now),
                )
            )
        return views
