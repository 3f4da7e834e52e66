"""Interest selections and match ranking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from aviato.domain.common.exceptions import AviatoError
from aviato.domain.users.models import User

MAX_SELECTIONS = 5


class SelectionLimitExceeded(AviatoError):
    reason = "selection_limit"


@dataclass(frozen=True, slots=True)
class Match:
    user: User
    match_percentage: int


def add_selection(selections: Tuple[str, ...], item: str) -> Tuple[str, ...]:
    if item in selections:
        return selections
    if len(selections) >= MAX_SELECTIONS:
        raise SelectionLimitExceeded()
    return selections + (item,)


def remove_selection(selections: Tuple[str, ...], item: str) -> Tuple[str, ...]:
    return tuple(existing for existing in selections if existing != item)


def set_selections(items: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate preserving order; more than five distinct items is rejected."""
    result: list[str] = []
    for item in items:
        if item not in result:
            result.append(item)
    if len(result) > MAX_SELECTIONS:
        raise SelectionLimitExceeded()
    return tuple(result)


def match_percentage(selected: Sequence[str], other: Iterable[str]) -> int:
    if not selected:
        return 0
    shared = set(selected) & set(other)
    # half-up, as the client rounds
    return int(100 * len(shared) / len(set(selected)) + 0.5)


def find_matches(users: Iterable[User], selected: Sequence[str], *, exclude_id: str | None = None) -> list[Match]:
    """Rank by match percentage, or by approval rating when nothing is selected."""
    candidates = [user for user in users if user.id != exclude_id]
    if not selected:
        ranked = sorted(candidates, key=lambda user: user.approval_rating, reverse=True)
        return [Match(user=user, match_percentage=0) for user in ranked]
    matches = [Match(user=user, match_percentage=match_percentage(selected, user.selections)) for user in candidates]
    return sorted(matches, key=lambda match: match.match_percentage, reverse=True)
