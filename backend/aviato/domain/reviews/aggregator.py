"""Star review aggregation: one review per rater, running mean and count."""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from aviato.domain.reviews.exceptions import InvalidReviewRating, ReviewAlreadySubmitted, SelfReviewError
from aviato.domain.users.models import Review, User

MIN_RATING = 1
MAX_RATING = 5


def average_rating(ratings: Iterable[int]) -> float:
    """Mean rounded half-up to one decimal; 0.0 with no ratings."""
    values = list(ratings)
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def recompute(user: User) -> User:
    return replace(
        user,
        review_rating=average_rating(review.rating for review in user.reviews),
        review_count=len(user.reviews),
    )


def submit_review(target: User, rater_id: str, rater_name: str, rating: int) -> User:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidReviewRating()
    if rater_id == target.id:
        raise SelfReviewError()
    if target.has_review_from(rater_id):
        raise ReviewAlreadySubmitted()
    review = Review(rater_id=rater_id, rater_name=rater_name, rating=rating)
    return recompute(replace(target, reviews=target.reviews + (review,)))


def can_view_raters(viewer_id: str, target: User) -> bool:
    """Who-rated-whom is only visible to users who reviewed ``target`` themselves."""
    return target.has_review_from(viewer_id)
