"""Domain models for users in the session directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from aviato.domain.availability.models import AvailabilityMode, ModeSettings


@dataclass(frozen=True, slots=True)
class Review:
    """One 1-5 star review from ``rater_id``."""

    rater_id: str
    rater_name: str
    rating: int


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str = ""
    email: Optional[str] = None
    profile_pic: Optional[str] = None
    availability_mode: Optional[AvailabilityMode] = AvailabilityMode.GREEN
    availability_settings: Optional[ModeSettings] = None
    approval_rating: int = 0
    review_rating: float = 0.0
    review_count: int = 0
    reviews: Tuple[Review, ...] = ()
    selections: Tuple[str, ...] = ()

    @property
    def is_invisible(self) -> bool:
        return self.availability_mode is None

    def has_review_from(self, rater_id: str) -> bool:
        return any(review.rater_id == rater_id for review in self.reviews)


def find_user(users: Tuple[User, ...], user_id: Optional[str]) -> Optional[User]:
    if user_id is None:
        return None
    for user in users:
        if user.id == user_id:
            return user
    return None


def replace_user(users: Tuple[User, ...], updated: User) -> Tuple[User, ...]:
    """Swap the entry with ``updated.id`` in place, appending when absent."""
    replaced = False
    result = []
    for user in users:
        if user.id == updated.id:
            result.append(updated)
            replaced = True
        else:
            result.append(user)
    if not replaced:
        result.append(updated)
    return tuple(result)
