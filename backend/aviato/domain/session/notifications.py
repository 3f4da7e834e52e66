"""Notification sink contract for user feedback after session mutations."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from aviato.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class Severity(str, Enum):
	INFO = "info"
	SUCCESS = "success"
	ERROR = "error"


class NotificationSink(Protocol):
	def notify(self, message: str, severity: Severity) -> None:
		...


class LoggingNotificationSink:
	"""Default sink: records notifications in the structured log."""

	def notify(self, message: str, severity: Severity) -> None:
		level = logging.WARNING if severity is Severity.ERROR else logging.INFO
		logger.log(level, "notification", extra={"notice": message, "severity": severity.value})


def safe_notify(sink: NotificationSink, message: str, severity: Severity = Severity.INFO) -> None:
	"""Deliver ``message``; sink failures are logged and counted, never raised."""
	try:
		sink.notify(message, severity)
	except Exception:
		obs_metrics.inc_notify_failure()
		logger.exception("notification sink failed", extra={"severity": severity.value})
