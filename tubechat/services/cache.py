"""Key/value cache backends and the namespaced video cache built on top of them.

Every backend call degrades to a miss (reads) or a no-op (writes) when the
store is unreachable, so the pipeline keeps working without a cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Protocol

from pydantic import ValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from tubechat.schema.video import ProcessingStatus, Transcript, VideoMetadata

logger = logging.getLogger(__name__)

KEY_PREFIX = "youtube"
_UNAVAILABLE_MARKER = json.dumps({"available": False})
_CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class CacheStore(Protocol):
    """Backend contract: reads degrade to a miss and writes to a no-op when the store is unavailable."""

    async def connect(self) -> None:
        """Open the backend; an unreachable store is logged, not raised."""

    async def close(self) -> None:
        """Release the backend's resources."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when missing, expired or unreadable."""

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None:
        """Store ``value`` so that it expires after ``ttl_seconds``."""

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class RedisCache:
    """Redis-backed store; failures are logged and swallowed."""

    def __init__(self, url: str, *, timeout: float = 2.0) -> None:
        self._url = url
        self._timeout = timeout
        self._client: aioredis.Redis | None = None

    async def connect(self) -> None:
        if self._client is not None:
            return
        self._client = aioredis.from_url(
            self._url,
            decode_responses=True,
            socket_timeout=self._timeout,
            socket_connect_timeout=self._timeout,
        )
        try:
            await self._client.ping()
            logger.info("Connected to Redis", extra={"url": self._url})
        except _CACHE_ERRORS as exc:
            # The client reconnects lazily; later calls keep degrading to misses until it does
            logger.warning("Redis unreachable at startup: %s", exc, extra={"url": self._url})

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except _CACHE_ERRORS as exc:
            logger.warning("Error closing Redis client: %s", exc)
        finally:
            self._client = None

    async def get(self, key: str) -> str | None:
        if self._client is None:
            return None
        try:
            return await self._client.get(key)
        except _CACHE_ERRORS as exc:
            logger.warning("Cache read failed: %s", exc, extra={"key": key})
            return None

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None:
        if self._client is None:
            return
        try:
            await self._client.set(key, value, ex=max(int(ttl_seconds), 1))
        except _CACHE_ERRORS as exc:
            logger.warning("Cache write failed: %s", exc, extra={"key": key})

    async def delete(self, key: str) -> None:
        if self._client is None:
            return
        try:
            await self._client.delete(key)
        except _CACHE_ERRORS as exc:
            logger.warning("Cache delete failed: %s", exc, extra={"key": key})


class MemoryCache:
    """In-process TTL store used when no Redis URL is configured.

    Expired entries are purged on every write, and once ``max_entries`` live
    keys are held the least recently used ones are evicted.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic, max_entries: int = 10_000) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._entries: OrderedDict[str, tuple[str, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (value, now + ttl_seconds)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry", extra={"key": evicted})

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]


def build_cache_store(redis_url: str | None, *, max_entries: int = 10_000) -> CacheStore:
    if redis_url:
        return RedisCache(redis_url)
    logger.info("No Redis URL configured; using in-process cache")
    return MemoryCache(max_entries=max_entries)


@dataclass(slots=True)
class TranscriptEntry:
    """A cached transcript lookup; ``transcript`` is None when captions are known to be missing."""

    transcript: Transcript | None


def metadata_key(video_id: str) -> str:
    return f"{KEY_PREFIX}:metadata:{video_id}"


def transcript_key(video_id: str) -> str:
    return f"{KEY_PREFIX}:transcript:{video_id}"


def summary_key(video_id: str) -> str:
    return f"{KEY_PREFIX}:summary:{video_id}"


def processing_key(video_id: str) -> str:
    return f"{KEY_PREFIX}:processing:{video_id}"


class VideoCache:
    """Typed access to the per-video cache namespaces."""

    def __init__(self, store: CacheStore) -> None:
        self.store = store

    async def get_metadata(self, video_id: str) -> VideoMetadata | None:
        raw = await self.store.get(metadata_key(video_id))
        if raw is None:
            return None
        try:
            return VideoMetadata.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding undecodable cached metadata", extra={"video_id": video_id})
            return None

    async def set_metadata(self, metadata: VideoMetadata, ttl_seconds: float) -> None:
        await self.store.set_with_ttl(metadata_key(metadata.video_id), metadata.model_dump_json(), ttl_seconds)

    async def get_transcript(self, video_id: str) -> TranscriptEntry | None:
        raw = await self.store.get(transcript_key(video_id))
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if isinstance(payload, dict) and payload.get("available") is False:
                return TranscriptEntry(transcript=None)
            return TranscriptEntry(transcript=Transcript.model_validate(payload))
        except (ValueError, ValidationError):
            logger.warning("Discarding undecodable cached transcript", extra={"video_id": video_id})
            return None

    async def set_transcript(self, video_id: str, transcript: Transcript | None, ttl_seconds: float) -> None:
        value = transcript.model_dump_json() if transcript is not None else _UNAVAILABLE_MARKER
        await self.store.set_with_ttl(transcript_key(video_id), value, ttl_seconds)

    async def get_summary(self, video_id: str) -> str | None:
        return await self.store.get(summary_key(video_id))

    async def set_summary(self, video_id: str, summary: str, ttl_seconds: float) -> None:
        await self.store.set_with_ttl(summary_key(video_id), summary, ttl_seconds)

    async def get_status(self, video_id: str) -> ProcessingStatus | None:
        raw = await self.store.get(processing_key(video_id))
        if raw is None:
            return None
        try:
            return ProcessingStatus(raw)
        except ValueError:
            logger.warning("Ignoring unknown processing status %r", raw, extra={"video_id": video_id})
            return None

    async def set_status(self, video_id: str, status: ProcessingStatus, ttl_seconds: float) -> None:
        await self.store.set_with_ttl(processing_key(video_id), status.value, ttl_seconds)

    async def clear(self, video_id: str) -> None:
        for key in (
            metadata_key(video_id),
            transcript_key(video_id),
            summary_key(video_id),
            processing_key(video_id),
        ):
            await self.store.delete(key)


__all__ = [
    "CacheStore",
    "MemoryCache",
    "RedisCache",
    "TranscriptEntry",
    "VideoCache",
    "build_cache_store",
]
