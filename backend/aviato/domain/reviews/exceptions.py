"""Domain-level exceptions for star reviews."""

from __future__ import annotations

from aviato.domain.common.exceptions import AviatoError


class ReviewError(AviatoError):
    """Base class for review errors."""


class ReviewAlreadySubmitted(ReviewError):
    reason = "already_reviewed"


class InvalidReviewRating(ReviewError):
    reason = "invalid_rating"


class SelfReviewError(ReviewError):
    reason = "self_review"
