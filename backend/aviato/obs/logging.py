"""Structured logging helpers for the observability package."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aviato.settings import settings

_USER_ID: ContextVar[Optional[str]] = ContextVar("obs_user_id", default=None)
_TARGET_USER_ID: ContextVar[Optional[str]] = ContextVar("obs_target_user_id", default=None)
_CONVERSATION_ID: ContextVar[Optional[str]] = ContextVar("obs_conversation_id", default=None)
_ACTION: ContextVar[Optional[str]] = ContextVar("obs_action", default=None)

_LOGGER_NAME = "aviato"

_SENSITIVE_KEYWORDS = (
    "token",
    "secret",
    "password",
    "email",
    "text",
    "body",
    "message",
    "payload",
)

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

_RESERVED_ATTRS = {
    "args",
    "msg",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "process",
    "processName",
    "taskName",
    "message",
}


def bind_context(
    *,
    user_id: Optional[str] = None,
    target_user_id: Optional[str] = None,
    conversation_id: Optional[str] = None,
    action: Optional[str] = None,
) -> Dict[str, Token]:
    """Bind contextual fields for the current session action and return reset tokens."""
    tokens: Dict[str, Token] = {}
    if user_id is not None:
        tokens["user_id"] = _USER_ID.set(user_id)
    if target_user_id is not None:
        tokens["target_user_id"] = _TARGET_USER_ID.set(target_user_id)
    if conversation_id is not None:
        tokens["conversation_id"] = _CONVERSATION_ID.set(conversation_id)
    if action is not None:
        tokens["action"] = _ACTION.set(action)
    return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
    for key, token in tokens.items():
        if key == "user_id":
            _USER_ID.reset(token)
        elif key == "target_user_id":
            _TARGET_USER_ID.reset(token)
        elif key == "conversation_id":
            _CONVERSATION_ID.reset(token)
        elif key == "action":
            _ACTION.reset(token)


def _truncate_collection(values: list[Any]) -> list[Any]:
    if len(values) <= _MAX_COLLECTION_ITEMS:
        return values
    trimmed = values[:_MAX_COLLECTION_ITEMS]
    trimmed.append("…")
    return trimmed


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return value if len(value) <= _MAX_STRING_LENGTH else f"{value[:_MAX_STRING_LENGTH]}…"
    if isinstance(value, dict):
        result: Dict[str, Any] = {}
        for idx, (key, nested) in enumerate(value.items()):
            if idx >= _MAX_COLLECTION_ITEMS:
                result["…"] = f"+{len(value) - _MAX_COLLECTION_ITEMS} keys"
                break
            result[key] = _sanitize_field(key, nested)
        return result
    if isinstance(value, (list, tuple, set)):
        items = [_sanitize_value(item) for item in list(value)]
        return _truncate_collection(items)
    return value


def _sanitize_field(key: str, value: Any) -> Any:
    lowered = key.lower()
    if any(keyword in lowered for keyword in _SENSITIVE_KEYWORDS):
        return "[redacted]"
    return _sanitize_value(value)


class JSONLogFormatter(logging.Formatter):
    """Emit logs as JSON objects with structured fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload: Dict[str, object] = {
            "ts": timestamp,
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
            "logger": record.name,
            "service": settings.service_name,
            "env": settings.environment,
            "commit": settings.git_commit,
        }
        user_id = _USER_ID.get()
        if user_id:
            payload["user_id"] = user_id
        target_user_id = _TARGET_USER_ID.get()
        if target_user_id:
            payload["target_user_id"] = target_user_id
        conversation_id = _CONVERSATION_ID.get()
        if conversation_id:
            payload["conversation_id"] = conversation_id
        action = _ACTION.get()
        if action:
            payload["action"] = action
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        extra = {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}
        for key, value in extra.items():
            payload[key] = _sanitize_field(key, value)
        return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
    """Randomly sample info-level logs, keep warnings/errors."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if record.levelno != logging.INFO:
            return True
        rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
        if rate >= 1.0:
            return True
        return random.random() < rate


def configure_logging() -> logging.Logger:
    """Configure root logger with JSON formatting and sampling."""
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JSONLogFormatter())
    handler.addFilter(InfoSamplingFilter())
    root.addHandler(handler)
    root.setLevel(settings.obs_log_level)
    return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or _LOGGER_NAME)
