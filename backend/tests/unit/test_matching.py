import pytest

from aviato.domain.matching.service import (
    MAX_SELECTIONS,
    SelectionLimitExceeded,
    add_selection,
    find_matches,
    match_percentage,
    remove_selection,
    set_selections,
)
from aviato.domain.users.models import User


def test_add_and_remove_selection():
    selections = add_selection((), "hiking")
    selections = add_selection(selections, "hiking")
    assert selections == ("hiking",)
    assert remove_selection(selections, "hiking") == ()
    assert remove_selection(selections, "chess") == ("hiking",)


def test_selection_limit():
    full = tuple(f"item-{i}" for i in range(MAX_SELECTIONS))
    with pytest.raises(SelectionLimitExceeded):
        add_selection(full, "one-more")
    assert add_selection(full, "item-0") == full
    with pytest.raises(SelectionLimitExceeded):
        set_selections(list(full) + ["one-more"])


def test_set_selections_dedupes_in_order():
    assert set_selections(["b", "a", "b", "c"]) == ("b", "a", "c")


def test_match_percentage():
    assert match_percentage([], ["a"]) == 0
    assert match_percentage(["a", "b", "c"], ["a", "b"]) == 67
    assert match_percentage(["a", "b"], ["a"]) == 50
    assert match_percentage(["a"], ["a", "z"]) == 100


def test_find_matches_ranks_by_overlap_and_excludes_self():
    users = (
        User(id="me", selections=("a", "b")),
        User(id="x", selections=("a",), approval_rating=90),
        User(id="y", selections=("a", "b"), approval_rating=10),
        User(id="z", selections=(), approval_rating=50),
    )
    ranked = find_matches(users, ("a", "b"), exclude_id="me")
    assert [(m.user.id, m.match_percentage) for m in ranked] == [("y", 100), ("x", 50), ("z", 0)]


def test_find_matches_without_selection_orders_by_approval():
    users = (User(id="x", approval_rating=10), User(id="y", approval_rating=90))
    assert [m.user.id for m in find_matches(users, ())] == ["y", "x"]
