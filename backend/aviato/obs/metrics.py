"""Central registry for Prometheus metrics used across the engine."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

from aviato.settings import settings

log = logging.getLogger(__name__)


MESSAGES_TOTAL = Counter(
    "aviato_messages_total",
    "Conversation messages appended",
    ["direction"],
)

TIMER_CYCLES_STARTED = Counter(
    "aviato_timer_cycles_started_total",
    "Response timer cycles started by outbound messages",
)

RATINGS_TOTAL = Counter(
    "aviato_ratings_total",
    "Conversation ratings recorded",
    ["outcome"],
)

RATINGS_REJECTED = Counter(
    "aviato_ratings_rejected_total",
    "Conversation ratings rejected",
    ["reason"],
)

APPROVAL_DELTA = Histogram(
    "aviato_approval_delta",
    "Approval rating change applied per rating",
    buckets=(-30, -25, -20, -15, -10, 0, 10),
)

MODE_CHANGES = Counter(
    "aviato_availability_mode_changes_total",
    "Availability mode changes",
    ["mode"],
)

REVIEWS_TOTAL = Counter(
    "aviato_reviews_total",
    "Star review submissions",
    ["status"],
)

PERSISTENCE_FAILURES = Counter(
    "aviato_persistence_failures_total",
    "Persistence gateway operations that failed and degraded to memory",
    ["operation"],
)

NOTIFY_FAILURES = Counter(
    "aviato_notification_failures_total",
    "Notification sink deliveries that raised",
)


def _enabled() -> bool:
    return bool(settings.obs_metrics_enabled)


def inc_message(direction: str) -> None:
    if _enabled():
        MESSAGES_TOTAL.labels(direction=direction).inc()


def inc_timer_cycle() -> None:
    if _enabled():
        TIMER_CYCLES_STARTED.inc()


def observe_rating(outcome: str, delta: int) -> None:
    if not _enabled():
        return
    RATINGS_TOTAL.labels(outcome=outcome).inc()
    APPROVAL_DELTA.observe(delta)


def inc_rating_rejected(reason: str) -> None:
    if _enabled():
        RATINGS_REJECTED.labels(reason=reason).inc()


def inc_mode_change(mode: str) -> None:
    if _enabled():
        MODE_CHANGES.labels(mode=mode).inc()


def inc_review(status: str) -> None:
    if _enabled():
        REVIEWS_TOTAL.labels(status=status).inc()


def inc_persistence_failure(operation: str) -> None:
    if _enabled():
        PERSISTENCE_FAILURES.labels(operation=operation).inc()
    log.debug("persistence failure counted", extra={"operation": operation})


def inc_notify_failure() -> None:
    if _enabled():
        NOTIFY_FAILURES.inc()
