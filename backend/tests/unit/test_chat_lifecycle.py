import pytest

from aviato.domain.availability.models import AvailabilityMode
from aviato.domain.chat.exceptions import (
    ConversationAlreadyRated,
    ConversationNotFound,
    ConversationNotRateable,
    EmptyMessage,
)
from aviato.domain.chat.lifecycle import (
    find_conversation,
    mark_rated,
    receive_message,
    send_message,
    start_conversation,
)
from aviato.domain.chat.models import TIMER_DURATION_MS, RatingType

OWNER = "me"


def _open(*user_ids, now=0):
    conversations = ()
    for user_id in user_ids:
        conversations, _, _ = start_conversation(conversations, user_id, now=now)
    return conversations


def test_start_conversation_creates_once():
    conversations, conv, created = start_conversation((), "alice", now=500, previous_mode=AvailabilityMode.GREEN)
    assert created is True
    assert conv.timer_started is None
    assert conv.previous_mode is AvailabilityMode.GREEN

    again, same, created = start_conversation(conversations, "alice", now=900)
    assert created is False
    assert same is conv
    assert again is conversations


def test_first_send_starts_timer():
    conversations = send_message(_open("alice"), OWNER, "alice", "hi", now=1000)
    conv = find_conversation(conversations, "alice")
    assert conv.timer_started == 1000
    assert conv.rated is False
    assert len(conv.messages) == 1
    assert conv.last_message == "You: hi"
    assert conv.waiting_for_response is True
    assert conv.they_responded_last is False


def test_sends_within_window_accumulate():
    conversations = send_message(_open("alice"), OWNER, "alice", "one", now=1000)
    conversations = send_message(conversations, OWNER, "alice", "two", now=1000 + TIMER_DURATION_MS - 1)
    conv = find_conversation(conversations, "alice")
    assert conv.timer_started == 1000
    assert [m.text for m in conv.messages] == ["one", "two"]


def test_send_after_expiry_restarts_timer():
    conversations = send_message(_open("alice"), OWNER, "alice", "one", now=1000)
    later = 1000 + TIMER_DURATION_MS
    conversations = send_message(conversations, OWNER, "alice", "two", now=later)
    assert find_conversation(conversations, "alice").timer_started == later


def test_send_after_rating_opens_new_cycle():
    conversations = send_message(_open("alice"), OWNER, "alice", "one", now=1000)
    conversations = mark_rated(conversations, "alice", False, "Spam messages")
    conversations = send_message(conversations, OWNER, "alice", "two", now=2000)
    conv = find_conversation(conversations, "alice")
    assert conv.timer_started == 2000
    assert conv.rated is False
    assert conv.rating_type is None
    assert conv.rating_reason is None
    assert conv.timer_expired is False


def test_receive_marks_seen_and_leaves_timer_alone():
    conversations = send_message(_open("alice"), OWNER, "alice", "ping", now=1000)
    conversations = receive_message(conversations, OWNER, "alice", "pong", now=5000)
    conv = find_conversation(conversations, "alice")
    assert conv.timer_started == 1000
    assert conv.messages[0].seen is True
    assert conv.messages[1].sender_id == "alice"
    assert conv.has_other_user_replied is True
    assert conv.they_responded_last is True
    assert conv.waiting_for_response is False
    assert conv.last_message == "pong"


def test_receive_without_timer_does_not_start_one():
    conversations = receive_message(_open("alice"), OWNER, "alice", "hey", now=1000)
    assert find_conversation(conversations, "alice").timer_started is None


def test_identical_receives_get_distinct_messages():
    conversations = receive_message(_open("alice"), OWNER, "alice", "hey", now=1000)
    conversations = receive_message(conversations, OWNER, "alice", "hey", now=1000)
    messages = find_conversation(conversations, "alice").messages
    assert len(messages) == 2
    assert messages[0].message_id != messages[1].message_id


def test_activity_moves_conversation_to_front():
    conversations = _open("alice", "bob", "olga")
    assert [c.user_id for c in conversations] == ["olga", "bob", "alice"]
    conversations = send_message(conversations, OWNER, "alice", "hi", now=10)
    assert [c.user_id for c in conversations] == ["alice", "olga", "bob"]
    conversations = receive_message(conversations, OWNER, "bob", "yo", now=20)
    assert [c.user_id for c in conversations] == ["bob", "alice", "olga"]


def test_send_without_owner_is_a_no_op():
    conversations = _open("alice")
    assert send_message(conversations, None, "alice", "hi", now=1000) is conversations


def test_send_rejects_blank_text_and_unknown_peer():
    conversations = _open("alice")
    with pytest.raises(EmptyMessage):
        send_message(conversations, OWNER, "alice", "   ", now=1000)
    with pytest.raises(ConversationNotFound):
        send_message(conversations, OWNER, "zed", "hi", now=1000)


def test_mark_rated_keeps_order_and_rejects_repeat():
    conversations = send_message(_open("alice", "bob"), OWNER, "alice", "hi", now=1000)
    order = [c.user_id for c in conversations]
    conversations = mark_rated(conversations, "alice", True)
    assert [c.user_id for c in conversations] == order
    conv = find_conversation(conversations, "alice")
    assert conv.rated is True
    assert conv.timer_expired is True
    assert conv.rating_type is RatingType.GOOD
    with pytest.raises(ConversationAlreadyRated):
        mark_rated(conversations, "alice", False)


def test_mark_rated_requires_timer_cycle():
    with pytest.raises(ConversationNotRateable):
        mark_rated(_open("alice"), "alice", True)
