import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from aviato.domain.availability.models import AvailabilityMode, OrangeSettings
from aviato.domain.session.notifications import Severity
from aviato.domain.session.service import SessionService
from aviato.domain.users.models import User
from aviato.infra.clock import ManualClock
from aviato.infra.persistence import InMemoryPersistenceGateway
from aviato.settings import settings

BASE_MS = 1_767_225_600_000  # 2026-01-01T00:00:00Z


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from aviato.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	original_env = settings.environment
	original_prefix = settings.persistence_key_prefix
	settings.environment = "dev"
	settings.persistence_key_prefix = "aviato"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.persistence_key_prefix = original_prefix


class RecordingSink:
	def __init__(self) -> None:
		self.notices: list[tuple[str, Severity]] = []

	def notify(self, message: str, severity: Severity) -> None:
		self.notices.append((message, severity))

	@property
	def messages(self) -> list[str]:
		return [message for message, _ in self.notices]


@pytest.fixture
def clock():
	return ManualClock(BASE_MS)


@pytest.fixture
def sink():
	return RecordingSink()


@pytest.fixture
def gateway():
	return InMemoryPersistenceGateway()


@pytest.fixture
def directory():
	return (
		User(id="me", name="You", availability_mode=AvailabilityMode.GREEN),
		User(id="alice", name="Alice", availability_mode=AvailabilityMode.GREEN, approval_rating=80),
		User(id="bob", name="Bob", availability_mode=AvailabilityMode.RED, approval_rating=60),
		User(
			id="olga",
			name="Olga",
			availability_mode=AvailabilityMode.ORANGE,
			availability_settings=OrangeSettings(max_contact=1, current_contacts=0),
			approval_rating=70,
		),
	)


@pytest_asyncio.fixture
async def session(gateway, clock, sink, directory):
	service = SessionService(gateway, clock=clock, notifier=sink, seed_users=directory)
	await service.sign_in(directory[0])
	return service
