"""Approval deltas for conversation ratings."""

from __future__ import annotations

from typing import Mapping, Optional

GOOD_DELTA = 10
DEFAULT_PENALTY = -10

PENALTIES: Mapping[str, int] = {
    "No response / Ghosted": -15,
    "Rude or disrespectful": -20,
    "Spam messages": -25,
    "Inappropriate content": -30,
    "One-word answers": -10,
}

RATING_REASONS: tuple[str, ...] = tuple(PENALTIES)


def approval_delta(is_good: bool, reason: Optional[str] = None) -> int:
    """Good ratings add a flat bonus; bad ones look up the reason, defaulting to -10."""
    if is_good:
        return GOOD_DELTA
    if not reason:
        return DEFAULT_PENALTY
    return PENALTIES.get(reason, DEFAULT_PENALTY)
