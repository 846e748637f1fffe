"""Unit tests for core.cache module.

Tests the TTL read-through cache in front of the store:
- Reads are served from cache after the first hit
- Writes through the decorator are never served stale
- Set membership is invalidated on append
"""

from unittest.mock import AsyncMock

import pytest

from core.cache import CachedStore
from core.store import MemoryStore

pytestmark = pytest.mark.unit


@pytest.fixture
def inner() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cached(inner: MemoryStore) -> CachedStore:
    return CachedStore(inner, ttl_seconds=60, max_size=10)


class TestCachedValues:
    async def test_repeated_reads_hit_cache(self, inner: MemoryStore, cached: CachedStore):
        await inner.set("k", "v")
        inner.get = AsyncMock(wraps=inner.get)

        assert await cached.get("k") == "v"
        assert await cached.get("k") == "v"

        inner.get.assert_awaited_once_with("k")

    async def test_misses_are_not_cached(self, inner: MemoryStore, cached: CachedStore):
        assert await cached.get("k") is None

        await inner.set("k", "late")

        assert await cached.get("k") == "late"

    async def test_write_through_updates_cache(self, inner: MemoryStore, cached: CachedStore):
        await cached.set("k", "old")
        await cached.get("k")

        await cached.set("k", "new")

        assert await cached.get("k") == "new"
        assert await inner.get("k") == "new"

    async def test_out_of_band_write_is_stale_until_invalidated(
        self, inner: MemoryStore, cached: CachedStore
    ):
        await cached.set("k", "old")
        await inner.set("k", "other replica")

        assert await cached.get("k") == "old"

        cached.invalidate("k")
        assert await cached.get("k") == "other replica"


class TestCachedMembers:
    async def test_append_invalidates_members(self, cached: CachedStore):
        await cached.add_to_set("s", "a")
        assert await cached.members_of("s") == ["a"]

        await cached.add_to_set("s", "b")

        assert sorted(await cached.members_of("s")) == ["a", "b"]

    async def test_returned_list_is_a_copy(self, cached: CachedStore):
        await cached.add_to_set("s", "a")
        members = await cached.members_of("s")
        members.append("mutated")

        assert await cached.members_of("s") == ["a"]


class TestCacheLifecycle:
    async def test_stats(self, cached: CachedStore):
        await cached.set("k", "v")

        stats = cached.stats()

        assert stats["values"] == {"current_size": 1, "max_size": 10}
        assert stats["members"]["current_size"] == 0

    async def test_close_clears_and_closes_inner(self, inner: MemoryStore, cached: CachedStore):
        await cached.set("k", "v")

        await cached.close()

        assert cached.stats()["values"]["current_size"] == 0
        assert await inner.get("k") is None
