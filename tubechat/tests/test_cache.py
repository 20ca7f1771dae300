"""Tests for cache backends and the namespaced video cache."""

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import VIDEO_ID, make_metadata, make_transcript
from tubechat.schema.video import ProcessingStatus
from tubechat.services.cache import MemoryCache, RedisCache, VideoCache, build_cache_store

pytest_plugins = ("pytest_asyncio",)


class _BrokenRedisClient:
    """Stands in for a redis client whose server has gone away."""

    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        raise RedisConnectionError("connection refused")

    async def aclose(self):
        raise RedisConnectionError("connection refused")


class _RecordingRedisClient:
    def __init__(self) -> None:
        self.data: dict[str, tuple[str, int | None]] = {}

    async def get(self, key):
        entry = self.data.get(key)
        return entry[0] if entry else None

    async def set(self, key, value, ex=None):
        self.data[key] = (value, ex)

    async def delete(self, key):
        self.data.pop(key, None)


@pytest.mark.asyncio
async def test_memory_cache_expires_entries(store: MemoryCache, clock) -> None:
    await store.set_with_ttl("k", "v", 10)
    assert await store.get("k") == "v"

    clock.advance(9.9)
    assert await store.get("k") == "v"

    clock.advance(0.2)
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_memory_cache_delete(store: MemoryCache) -> None:
    await store.set_with_ttl("k", "v", 10)
    await store.delete("k")
    await store.delete("missing")
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_memory_cache_drops_expired_keys_on_write(store: MemoryCache, clock) -> None:
    for index in range(1000):
        await store.set_with_ttl(f"youtube:processing:id{index}", "processing", 1)
    await store.set_with_ttl("youtube:summary:keep", "long lived", 7200)
    assert len(store) == 1001

    clock.advance(10)
    await store.set_with_ttl("youtube:processing:fresh", "processing", 300)

    assert len(store) == 2
    assert await store.get("youtube:summary:keep") == "long lived"


@pytest.mark.asyncio
async def test_memory_cache_evicts_least_recently_used(clock) -> None:
    store = MemoryCache(clock=clock, max_entries=2)
    await store.set_with_ttl("a", "1", 60)
    await store.set_with_ttl("b", "2", 60)
    assert await store.get("a") == "1"

    await store.set_with_ttl("c", "3", 60)

    assert len(store) == 2
    assert await store.get("b") is None
    assert await store.get("a") == "1"
    assert await store.get("c") == "3"


@pytest.mark.asyncio
async def test_redis_cache_degrades_to_miss_when_unreachable() -> None:
    redis_cache = RedisCache("redis://localhost:6379/0")
    redis_cache._client = _BrokenRedisClient()

    assert await redis_cache.get("youtube:metadata:x") is None
    await redis_cache.set_with_ttl("youtube:metadata:x", "{}", 60)
    await redis_cache.delete("youtube:metadata:x")
    await redis_cache.close()
    assert redis_cache._client is None


@pytest.mark.asyncio
async def test_redis_cache_without_client_is_a_no_op() -> None:
    redis_cache = RedisCache("redis://localhost:6379/0")
    assert await redis_cache.get("anything") is None
    await redis_cache.set_with_ttl("anything", "value", 5)


@pytest.mark.asyncio
async def test_redis_cache_passes_ttl_as_expiry() -> None:
    client = _RecordingRedisClient()
    redis_cache = RedisCache("redis://localhost:6379/0")
    redis_cache._client = client

    await redis_cache.set_with_ttl("youtube:summary:x", "text", 7200)
    assert client.data["youtube:summary:x"] == ("text", 7200)
    assert await redis_cache.get("youtube:summary:x") == "text"


def test_build_cache_store_selects_backend() -> None:
    assert isinstance(build_cache_store(None), MemoryCache)
    assert build_cache_store(None, max_entries=5)._max_entries == 5
    assert isinstance(build_cache_store("redis://cache:6379/0"), RedisCache)


@pytest.mark.asyncio
async def test_video_cache_uses_namespaced_keys(cache: VideoCache, store: MemoryCache) -> None:
    await cache.set_metadata(make_metadata(), 3600)
    await cache.set_transcript(VIDEO_ID, make_transcript(), 7200)
    await cache.set_summary(VIDEO_ID, "A summary", 7200)
    await cache.set_status(VIDEO_ID, ProcessingStatus.COMPLETED, 300)

    assert await store.get(f"youtube:metadata:{VIDEO_ID}") is not None
    assert await store.get(f"youtube:transcript:{VIDEO_ID}") is not None
    assert await store.get(f"youtube:summary:{VIDEO_ID}") == "A summary"
    assert await store.get(f"youtube:processing:{VIDEO_ID}") == "completed"


@pytest.mark.asyncio
async def test_video_cache_round_trips_records(cache: VideoCache) -> None:
    metadata = make_metadata()
    transcript = make_transcript()
    await cache.set_metadata(metadata, 3600)
    await cache.set_transcript(VIDEO_ID, transcript, 7200)

    assert await cache.get_metadata(VIDEO_ID) == metadata
    entry = await cache.get_transcript(VIDEO_ID)
    assert entry is not None
    assert entry.transcript == transcript


@pytest.mark.asyncio
async def test_unavailable_transcript_is_distinct_from_miss(cache: VideoCache) -> None:
    assert await cache.get_transcript(VIDEO_ID) is None

    await cache.set_transcript(VIDEO_ID, None, 7200)
    entry = await cache.get_transcript(VIDEO_ID)

    assert entry is not None
    assert entry.transcript is None


@pytest.mark.asyncio
async def test_corrupt_entries_read_as_misses(cache: VideoCache, store: MemoryCache) -> None:
    await store.set_with_ttl(f"youtube:metadata:{VIDEO_ID}", "not json", 60)
    await store.set_with_ttl(f"youtube:transcript:{VIDEO_ID}", "{broken", 60)
    await store.set_with_ttl(f"youtube:processing:{VIDEO_ID}", "paused", 60)

    assert await cache.get_metadata(VIDEO_ID) is None
    assert await cache.get_transcript(VIDEO_ID) is None
    assert await cache.get_status(VIDEO_ID) is None


@pytest.mark.asyncio
async def test_clear_removes_every_namespace(cache: VideoCache) -> None:
    await cache.set_metadata(make_metadata(), 3600)
    await cache.set_transcript(VIDEO_ID, None, 7200)
    await cache.set_summary(VIDEO_ID, "A summary", 7200)
    await cache.set_status(VIDEO_ID, ProcessingStatus.FAILED, 300)

    await cache.clear(VIDEO_ID)

    assert await cache.get_metadata(VIDEO_ID) is None
    assert await cache.get_transcript(VIDEO_ID) is None
    assert await cache.get_summary(VIDEO_ID) is None
    assert await cache.get_status(VIDEO_ID) is None
