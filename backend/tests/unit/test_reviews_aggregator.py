import pytest

from aviato.domain.reviews.aggregator import average_rating, can_view_raters, submit_review
from aviato.domain.reviews.exceptions import InvalidReviewRating, ReviewAlreadySubmitted, SelfReviewError
from aviato.domain.users.models import User


def test_average_rating_rounds_half_up():
    assert average_rating([]) == 0.0
    assert average_rating([5]) == 5.0
    assert average_rating([4, 5]) == 4.5
    # 4.25 rounds up
    assert average_rating([4, 4, 4, 5]) == 4.3
    assert average_rating([1, 2, 2]) == 1.7


def test_submit_review_updates_mean_and_count():
    target = User(id="t", name="Tess")
    target = submit_review(target, "a", "Ann", 5)
    target = submit_review(target, "b", "Ben", 4)
    assert target.review_count == 2
    assert target.review_rating == 4.5
    assert [r.rater_id for r in target.reviews] == ["a", "b"]


def test_duplicate_rater_is_rejected():
    target = submit_review(User(id="t"), "a", "Ann", 3)
    with pytest.raises(ReviewAlreadySubmitted):
        submit_review(target, "a", "Ann", 5)
    assert target.review_count == 1
    assert target.review_rating == 3.0


@pytest.mark.parametrize("rating", [0, 6, -1, 2.5, True, "5"])
def test_invalid_ratings(rating):
    with pytest.raises(InvalidReviewRating):
        submit_review(User(id="t"), "a", "Ann", rating)


def test_self_review_is_rejected():
    with pytest.raises(SelfReviewError):
        submit_review(User(id="t"), "t", "Tess", 5)


def test_only_reviewers_see_raters():
    target = submit_review(User(id="t"), "a", "Ann", 4)
    assert can_view_raters("a", target) is True
    assert can_view_raters("b", target) is False
