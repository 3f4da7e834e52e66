"""Conversation rating and approval exports."""

from .policy import DEFAULT_PENALTY, GOOD_DELTA, PENALTIES, RATING_REASONS, approval_delta  # noqa: F401
