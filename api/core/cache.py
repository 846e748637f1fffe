"""In-memory TTL read-through cache in front of the key-value store.

CachedStore wraps any KeyValueStore and serves repeated reads from a
cachetools TTLCache. Writes go to the wrapped store first and then update
(values) or invalidate (sets) the cached entry, so a key written through this
decorator is never served stale by it.

Note: Cache is per-worker/replica, not shared across instances. Writes made
by other replicas become visible after at most ttl_seconds. Suitable for
data that tolerates short-term staleness (users, tips); progress statistics
are always recomputed from the underlying records.
"""

from typing import TYPE_CHECKING

from cachetools import TTLCache

if TYPE_CHECKING:
    from core.store import KeyValueStore

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_SIZE = 1000


class CachedStore:
    def __init__(
        self,
        inner: "KeyValueStore",
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> None:
        self.inner = inner
        # Only present values are cached; a miss always goes to the store
        self._values: TTLCache[str, str] = TTLCache(maxsize=max_size, ttl=ttl_seconds)
        self._members: TTLCache[str, list[str]] = TTLCache(
            maxsize=max_size, ttl=ttl_seconds
        )

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await self.inner.set(key, value, ttl_seconds)
        self._values[key] = value

    async def get(self, key: str) -> str | None:
        cached = self._values.get(key)
        if cached is not None:
            return cached
        value = await self.inner.get(key)
        if value is not None:
            self._values[key] = value
        return value

    async def add_to_set(
        self, key: str, member: str, ttl_seconds: int | None = None
    ) -> None:
        await self.inner.add_to_set(key, member, ttl_seconds)
        self._members.pop(key, None)

    async def members_of(self, key: str) -> list[str]:
        cached = self._members.get(key)
        if cached is not None:
            return list(cached)
        members = await self.inner.members_of(key)
        self._members[key] = list(members)
        return members

    def invalidate(self, key: str) -> None:
        self._values.pop(key, None)
        self._members.pop(key, None)

    def clear(self) -> None:
        """For testing."""
        self._values.clear()
        self._members.clear()

    def stats(self) -> dict[str, dict[str, int]]:
        return {
            "values": {
                "current_size": len(self._values),
                "max_size": int(self._values.maxsize),
            },
            "members": {
                "current_size": len(self._members),
                "max_size": int(self._members.maxsize),
            },
        }

    async def ping(self) -> None:
        await self.inner.ping()

    async def close(self) -> None:
        self.clear()
        await self.inner.close()
