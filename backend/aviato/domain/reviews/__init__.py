"""Star review exports."""

from .aggregator import average_rating, can_view_raters, recompute, submit_review  # noqa: F401
