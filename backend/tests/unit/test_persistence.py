import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from aviato.domain.availability.models import AvailabilityMode, BlueSettings, OrangeSettings, YellowSettings
from aviato.domain.chat.lifecycle import receive_message, send_message, start_conversation
from aviato.domain.chat.schemas import dump_conversations, load_conversations
from aviato.domain.users.models import Review, User
from aviato.domain.users.schemas import dump_user, load_user, load_users
from aviato.infra.persistence import InMemoryPersistenceGateway, RedisPersistenceGateway, StoreKey, storage_key


class _BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("down")

    async def set(self, key, value):
        raise RedisConnectionError("down")

    async def delete(self, key):
        raise RedisConnectionError("down")


def test_storage_key_uses_prefix():
    assert storage_key(StoreKey.USERS) == "aviato_users"
    assert storage_key(StoreKey.CURRENT_USER, "demo") == "demo_current_user"


@pytest.mark.asyncio
async def test_in_memory_gateway_copies_values():
    gateway = InMemoryPersistenceGateway()
    value = [{"id": "u"}]
    await gateway.save(StoreKey.USERS, value)
    value[0]["id"] = "changed"
    loaded = await gateway.load(StoreKey.USERS)
    assert loaded == [{"id": "u"}]
    await gateway.remove(StoreKey.USERS)
    assert await gateway.load(StoreKey.USERS) is None


@pytest.mark.asyncio
async def test_redis_gateway_stores_json(fake_redis):
    gateway = RedisPersistenceGateway()
    await gateway.save(StoreKey.CONVERSATIONS, [{"id": "c1"}])
    raw = await fake_redis.get("aviato_conversations")
    assert json.loads(raw) == [{"id": "c1"}]
    assert await gateway.load(StoreKey.CONVERSATIONS) == [{"id": "c1"}]
    await gateway.remove(StoreKey.CONVERSATIONS)
    assert await fake_redis.get("aviato_conversations") is None


@pytest.mark.asyncio
async def test_redis_gateway_ignores_malformed_records(fake_redis):
    await fake_redis.set("aviato_users", "{not json")
    gateway = RedisPersistenceGateway()
    assert await gateway.load(StoreKey.USERS) is None
    assert gateway.degraded is False


@pytest.mark.asyncio
async def test_redis_gateway_degrades_to_memory():
    gateway = RedisPersistenceGateway(_BrokenRedis())
    await gateway.save(StoreKey.USERS, [{"id": "u"}])
    assert gateway.degraded is True
    assert await gateway.load(StoreKey.USERS) == [{"id": "u"}]
    await gateway.remove(StoreKey.USERS)
    assert await gateway.load(StoreKey.USERS) is None


def test_user_record_keeps_flat_availability_bag():
    user = User(
        id="u",
        name="Uma",
        availability_mode=AvailabilityMode.ORANGE,
        availability_settings=OrangeSettings(max_contact=3, current_contacts=2),
        reviews=(Review("r", "Rae", 4),),
        review_rating=4.0,
        review_count=1,
    )
    payload = dump_user(user)
    assert payload["availabilityMode"] == "orange"
    assert payload["availability"]["maxContact"] == 3
    assert payload["availability"]["currentContacts"] == 2
    assert payload["reviews"][0]["raterId"] == "r"
    assert load_user(payload) == user


def test_user_record_accepts_iso_open_date_and_null_mode():
    blue = load_user({"id": "b", "availabilityMode": "blue", "availability": {"openDate": "2026-03-05T09:00:00Z"}})
    assert blue.availability_settings == BlueSettings(open_date=1_772_701_200_000)

    invisible = load_user({"id": 7, "availabilityMode": None, "availability": None})
    assert invisible.id == "7"
    assert invisible.availability_mode is None
    assert invisible.availability_settings is None


def test_user_record_drops_settings_of_other_modes():
    payload = {
        "id": "y",
        "availabilityMode": "yellow",
        "availability": {"laterMinutes": 30, "laterStartTime": 1000, "maxContact": 9},
    }
    assert load_user(payload).availability_settings == YellowSettings(later_minutes=30, later_start_time=1000)


def test_invalid_users_are_skipped():
    users = load_users([{"id": "ok"}, {"name": "no id"}, "junk", {"id": "bad", "reviews": [{"raterId": "x", "rating": 9}]}])
    assert [user.id for user in users] == ["ok"]
    assert load_user("junk") is None
    assert load_users(None) == ()


def test_conversation_records_round_trip_in_order():
    conversations, _, _ = start_conversation((), "alice", now=0)
    conversations, _, _ = start_conversation(conversations, "bob", now=0)
    conversations = send_message(conversations, "me", "alice", "hi", now=1000)
    conversations = receive_message(conversations, "me", "bob", "yo", now=2000)

    payload = dump_conversations(conversations)
    assert payload[0]["userId"] == "bob"
    assert payload[1]["timerStarted"] == 1000
    assert payload[1]["messages"][0]["id"] == conversations[1].messages[0].message_id
    assert load_conversations(payload) == conversations


def test_load_conversations_drops_duplicates_and_junk():
    payload = [
        {"id": "c1", "userId": "alice", "timerStarted": 5},
        {"id": "c2", "userId": "alice"},
        {"userId": "missing-id"},
        42,
    ]
    conversations = load_conversations(payload)
    assert [c.id for c in conversations] == ["c1"]
    assert conversations[0].timer_started == 5
    assert load_conversations({"not": "a list"}) == ()


@pytest.mark.parametrize("bag", [{"timedHour": 24, "timedMinute": 0}, {"timedHour": 9, "timedMinute": 60}])
def test_out_of_range_brown_time_drops_user(bag):
    assert load_user({"id": "x", "availabilityMode": "brown", "availability": bag}) is None
    assert load_users([{"id": "x", "availabilityMode": "brown", "availability": bag}, {"id": "ok"}])[0].id == "ok"
