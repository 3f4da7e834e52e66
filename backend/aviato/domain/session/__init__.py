"""Session (application state) exports."""

from .notifications import LoggingNotificationSink, NotificationSink, Severity  # noqa: F401
from .service import ConversationView, SessionService  # noqa: F401
from .state import AppState  # noqa: F401
