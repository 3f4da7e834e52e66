"""Interest matching exports."""

from .service import MAX_SELECTIONS, Match, SelectionLimitExceeded, find_matches, match_percentage  # noqa: F401
