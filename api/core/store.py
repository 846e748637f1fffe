"""Key-value store client, lifecycle, and FastAPI dependency.

All persistence goes through the narrow KeyValueStore interface:
    set / get              string values with optional per-key expiration
    add_to_set / members_of  string sets (e.g. a user's log ids)

Backends:
- RedisStore: redis.asyncio client, used in every deployment
- MemoryStore: in-process dicts, for local development and tests

The store is created once in the FastAPI lifespan (create_store), stored on
app.state, and closed on shutdown (close_store). Routes receive it via StoreDep.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Annotated, Protocol, runtime_checkable

import redis.asyncio as redis
from fastapi import Depends, Request
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.config import Settings, get_settings
from core.logger import get_logger

logger = get_logger(__name__)


class StoreUnavailableError(Exception):
    """Raised when the key-value store cannot be reached.

    Never retried inside the application; the caller decides.
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


@runtime_checkable
class KeyValueStore(Protocol):
    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        ...

    async def get(self, key: str) -> str | None:
        ...

    async def add_to_set(
        self, key: str, member: str, ttl_seconds: int | None = None
    ) -> None:
        ...

    async def members_of(self, key: str) -> list[str]:
        ...

    async def ping(self) -> None:
        ...

    async def close(self) -> None:
        ...


@contextmanager
def _translate_errors(operation: str, key: str | None = None) -> Iterator[None]:
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        logger.warning("store.unavailable", operation=operation, key=key, error=str(e))
        raise StoreUnavailableError(
            f"Key-value store unavailable during {operation}: {e}",
            operation=operation,
        ) from e


class RedisStore:
    """KeyValueStore backed by Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, *, timeout: float = 5.0) -> RedisStore:
        # Undecodable bytes read back as U+FFFD and fail record validation
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            encoding_errors="replace",
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        with _translate_errors("set", key):
            await self.client.set(key, value, ex=ttl_seconds)

    async def get(self, key: str) -> str | None:
        with _translate_errors("get", key):
            return await self.client.get(key)

    async def add_to_set(
        self, key: str, member: str, ttl_seconds: int | None = None
    ) -> None:
        with _translate_errors("add_to_set", key):
            async with self.client.pipeline(transaction=False) as pipe:
                pipe.sadd(key, member)
                if ttl_seconds is not None:
                    pipe.expire(key, ttl_seconds)
                await pipe.execute()

    async def members_of(self, key: str) -> list[str]:
        with _translate_errors("members_of", key):
            members = await self.client.smembers(key)
        return list(members)

    async def ping(self) -> None:
        with _translate_errors("ping"):
            await self.client.ping()

    async def close(self) -> None:
        await self.client.aclose()


class MemoryStore:
    """KeyValueStore kept in process memory.

    Data is lost on restart and not shared across workers. Expiration is
    checked lazily on access against ``clock`` (seconds, monotonic).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}
        self._expires_at: dict[str, float] = {}

    def _expire_if_due(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._values.pop(key, None)
            self._sets.pop(key, None)
            self._expires_at.pop(key, None)

    def _set_ttl(self, key: str, ttl_seconds: int | None) -> None:
        if ttl_seconds is None:
            return
        self._expires_at[key] = self._clock() + ttl_seconds

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self._sets.pop(key, None)
        self._expires_at.pop(key, None)
        self._values[key] = value
        self._set_ttl(key, ttl_seconds)

    async def get(self, key: str) -> str | None:
        self._expire_if_due(key)
        return self._values.get(key)

    async def add_to_set(
        self, key: str, member: str, ttl_seconds: int | None = None
    ) -> None:
        self._expire_if_due(key)
        self._sets.setdefault(key, set()).add(member)
        self._set_ttl(key, ttl_seconds)

    async def members_of(self, key: str) -> list[str]:
        self._expire_if_due(key)
        return list(self._sets.get(key, ()))

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._values.clear()
        self._sets.clear()
        self._expires_at.clear()


def create_store(settings: Settings | None = None) -> KeyValueStore:
    """Build the configured store, wrapped in a read-through cache if enabled."""
    settings = settings or get_settings()

    store: KeyValueStore
    if settings.store_backend == "memory":
        store = MemoryStore()
    else:
        store = RedisStore.from_url(
            settings.redis_url, timeout=settings.store_timeout_seconds
        )

    if settings.cache_ttl_seconds > 0:
        # Deferred import: core.cache only needs this module for typing
        from core.cache import CachedStore

        store = CachedStore(
            store,
            ttl_seconds=settings.cache_ttl_seconds,
            max_size=settings.cache_max_size,
        )

    logger.info(
        "store.created",
        backend=settings.store_backend,
        cached=settings.cache_ttl_seconds > 0,
    )
    return store


async def close_store(store: KeyValueStore) -> None:
    await store.close()
    logger.info("store.closed")


async def check_store_connection(store: KeyValueStore) -> None:
    """Raises StoreUnavailableError if the store cannot be reached."""
    await store.ping()


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


StoreDep = Annotated[KeyValueStore, Depends(get_store)]
