"""Key-value persistence gateway for the three session records.

The engine treats persistence as best effort: a failing backend is logged,
counted, and replaced by an in-process store for the rest of the session.
Loads that fail or hit malformed data yield ``None`` so callers fall back to
their defaults.
"""

from __future__ import annotations

import copy
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from redis.exceptions import RedisError

from aviato.infra.redis import RedisProxy, redis_client
from aviato.obs import metrics as obs_metrics
from aviato.settings import settings

logger = logging.getLogger(__name__)


class StoreKey(str, Enum):
    """Logical records kept by the session."""

    CURRENT_USER = "current_user"
    USERS = "users"
    CONVERSATIONS = "conversations"


class PersistenceGateway(Protocol):
    async def load(self, key: StoreKey) -> Optional[Any]:
        ...

    async def save(self, key: StoreKey, value: Any) -> None:
        ...

    async def remove(self, key: StoreKey) -> None:
        ...


def storage_key(key: StoreKey, prefix: str | None = None) -> str:
    return f"{prefix or settings.persistence_key_prefix}_{key.value}"


class InMemoryPersistenceGateway:
    """Process-local store holding deep copies of the saved JSON values."""

    def __init__(self, *, prefix: str | None = None) -> None:
        self._prefix = prefix
        self._data: Dict[str, Any] = {}

    async def load(self, key: StoreKey) -> Optional[Any]:
        value = self._data.get(storage_key(key, self._prefix))
        return copy.deepcopy(value) if value is not None else None

    async def save(self, key: StoreKey, value: Any) -> None:
        self._data[storage_key(key, self._prefix)] = copy.deepcopy(value)

    async def remove(self, key: StoreKey) -> None:
        self._data.pop(storage_key(key, self._prefix), None)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


class RedisPersistenceGateway:
    """Stores each record as a JSON string in redis."""

    def __init__(self, client: RedisProxy | None = None, *, prefix: str | None = None) -> None:
        self._client = client or redis_client
        self._prefix = prefix
        self._fallback = InMemoryPersistenceGateway(prefix=prefix)
        self._degraded = False

    @property
    def degraded(self) -> bool:
        return self._degraded

    def _degrade(self, operation: str, exc: Exception) -> None:
        if not self._degraded:
            logger.warning(
                "persistence backend unavailable, continuing in memory",
                extra={"operation": operation, "error": type(exc).__name__},
            )
        self._degraded = True
        obs_metrics.inc_persistence_failure(operation)

    async def load(self, key: StoreKey) -> Optional[Any]:
        if self._degraded:
            return await self._fallback.load(key)
        try:
            raw = await self._client.get(storage_key(key, self._prefix))
        except (RedisError, OSError) as exc:
            self._degrade("load", exc)
            return await self._fallback.load(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("discarding malformed persisted record", extra={"key": key.value})
            obs_metrics.inc_persistence_failure("decode")
            return None

    async def save(self, key: StoreKey, value: Any) -> None:
        await self._fallback.save(key, value)
        if self._degraded:
            return
        try:
            await self._client.set(storage_key(key, self._prefix), json.dumps(value, separators=(",", ":")))
        except (RedisError, OSError) as exc:
            self._degrade("save", exc)

    async def remove(self, key: StoreKey) -> None:
        await self._fallback.remove(key)
        if self._degraded:
            return
        try:
            await self._client.delete(storage_key(key, self._prefix))
        except (RedisError, OSError) as exc:
            self._degrade("remove", exc)


def build_gateway() -> PersistenceGateway:
    if settings.persistence_backend == "redis":
        return RedisPersistenceGateway()
    return InMemoryPersistenceGateway()
