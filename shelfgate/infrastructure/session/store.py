"""Server-side session stores.

Session data never leaves the server; the browser only holds a signed
session id (see middleware.py).
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from shelfgate.config import SessionConfig
from shelfgate.domain.shared.error import StorageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 86400  # One day, used when the session cookie has no max age


class SessionStore(ABC):
    """Key-value backend for session data."""

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def set(self, session_id: str, data: dict[str, Any], ttl: int) -> None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None: ...

    async def close(self) -> None:
        pass


class InMemorySessionStore(SessionStore):
    """Process-local store. Only suitable for a single worker and tests.

    Expired entries are swept on every write, and the oldest entries are
    evicted once `max_entries` is reached.
    """

    def __init__(self, max_entries: int = 10000) -> None:
        self._data: dict[str, tuple[float, str]] = {}
        self.max_entries = max_entries

    async def get(self, session_id: str) -> dict[str, Any] | None:
        entry = self._data.get(session_id)
        if entry is None:
            return None
        expires_at, payload = entry
        if expires_at <= time.monotonic():
            del self._data[session_id]
            return None
        return json.loads(payload)

    async def set(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        now = time.monotonic()
        self._data.pop(session_id, None)
        self._sweep(now)
        self._data[session_id] = (now + ttl, json.dumps(data))

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        # Insertion order is write order
        while len(self._data) >= self.max_entries:
            del self._data[next(iter(self._data))]

    async def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)


class RedisSessionStore(SessionStore):
    """Redis-backed store shared by every worker."""

    def __init__(self, client: redis.Redis, prefix: str = "sess:") -> None:
        self._redis = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        logger.debug("New Redis session store at %s", url)
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, session_id: str) -> dict[str, Any] | None:
        try:
            payload = await self._redis.get(self._prefix + session_id)
        except RedisError as e:
            logger.error("Session load failed: %s", e)
            raise StorageUnavailableError("Session store unavailable", code="session_store") from e
        if not payload:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt session %s", session_id)
            return None

    async def set(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        try:
            await self._redis.set(self._prefix + session_id, json.dumps(data), ex=ttl)
        except RedisError as e:
            logger.error("Session save failed: %s", e)
            raise StorageUnavailableError("Session store unavailable", code="session_store") from e

    async def delete(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._prefix + session_id)
        except RedisError as e:
            logger.error("Session delete failed: %s", e)
            raise StorageUnavailableError("Session store unavailable", code="session_store") from e

    async def close(self) -> None:
        await self._redis.aclose()


def create_session_store(config: SessionConfig) -> SessionStore:
    if config.redis_url:
        return RedisSessionStore.from_url(config.redis_url)
    logger.warning("No session redis_url configured; using the in-process session store")
    return InMemorySessionStore()
