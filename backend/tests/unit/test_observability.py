import json
import logging

import pytest
from prometheus_client import REGISTRY

from aviato import obs
from aviato.domain.availability.models import AvailabilityMode, mode_color, mode_name
from aviato.obs import logging as obs_logging
from aviato.obs.logging import InfoSamplingFilter, JSONLogFormatter
from aviato.settings import settings


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("aviato.test", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_includes_bound_context_and_redacts():
    tokens = obs_logging.bind_context(user_id="me", target_user_id="alice", action="send_message")
    try:
        line = JSONLogFormatter().format(_record(text="secret words", reason="already_rated"))
    finally:
        obs_logging.reset_context(tokens)
    payload = json.loads(line)
    assert payload["user_id"] == "me"
    assert payload["target_user_id"] == "alice"
    assert payload["action"] == "send_message"
    assert payload["text"] == "[redacted]"
    assert payload["reason"] == "already_rated"
    assert payload["service"] == settings.service_name


def test_context_is_reset_after_action():
    tokens = obs_logging.bind_context(conversation_id="c1")
    obs_logging.reset_context(tokens)
    payload = json.loads(JSONLogFormatter().format(_record()))
    assert "conversation_id" not in payload


def test_long_values_are_truncated():
    payload = json.loads(JSONLogFormatter().format(_record(detail="x" * 500, ids=list(range(20)))))
    assert payload["detail"].endswith("…")
    assert len(payload["ids"]) == 11


def test_sampling_filter_keeps_warnings(monkeypatch):
    monkeypatch.setattr(settings, "obs_log_sampling_rate_info", 0.0)
    sampler = InfoSamplingFilter()
    assert sampler.filter(_record(level=logging.INFO)) is False
    assert sampler.filter(_record(level=logging.WARNING)) is True


def test_init_configures_json_handler():
    logger = obs.init()
    assert logger.name == "aviato"
    assert any(isinstance(h.formatter, JSONLogFormatter) for h in logging.getLogger().handlers)


@pytest.mark.asyncio
async def test_session_actions_are_counted(session, clock):
    def sample(name, **labels):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    before_out = sample("aviato_messages_total", direction="outbound")
    before_cycles = sample("aviato_timer_cycles_started_total")
    await session.start_chat("alice")
    await session.send_message("alice", "hi")
    clock.advance(1000)
    await session.send_message("alice", "again")
    assert sample("aviato_messages_total", direction="outbound") == before_out + 2
    assert sample("aviato_timer_cycles_started_total") == before_cycles + 1


def test_mode_catalogue():
    assert mode_name(AvailabilityMode.BROWN) == "Timed Mode"
    assert mode_name(None) == "Invisible"
    assert mode_color(None) == "#6B7280"
    assert mode_color(AvailabilityMode.BLUE) == "#0066FF"


def test_obs_package_exposes_structured_logging_module():
    assert obs_logging.__name__ == "aviato.obs.logging"
    assert obs.obs_logging is obs_logging
    assert callable(obs_logging.bind_context)
