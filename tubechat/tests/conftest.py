"""Shared fakes for the service-layer tests."""

from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from tubechat.schema.video import Transcript, TranscriptSegment, VideoMetadata
from tubechat.services.cache import MemoryCache, VideoCache
from tubechat.services.orchestrator import CacheTTLs, VideoProcessor

VIDEO_ID = "dQw4w9WgXcQ"


def make_metadata(video_id: str = VIDEO_ID, **overrides) -> VideoMetadata:
    fields = {
        "video_id": video_id,
        "title": "Never Gonna Give You Up",
        "description": "The official video.",
        "duration": "3:33",
        "channel_name": "Rick Astley",
        "thumbnail_url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
        "published_date": "October 25, 2009",
        "view_count": "1500000000",
    }
    fields.update(overrides)
    return VideoMetadata(**fields)


def make_transcript() -> Transcript:
    return Transcript.from_segments(
        [
            TranscriptSegment(text="We're no strangers to love", start=18.0, duration=3.5),
            TranscriptSegment(text="You know the rules and so do I", start=22.0, duration=4.0),
            TranscriptSegment(text="Never gonna give you up", start=43.2, duration=2.1),
        ]
    )


class FakeMetadataProvider:
    def __init__(self, result: VideoMetadata | None = None, *, error: Exception | None = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        self.calls.append(video_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeTranscriptProvider:
    def __init__(self, result: Transcript | None = None, *, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def get_transcript(self, video_id: str) -> Transcript | None:
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        return self.result


class FakeGenerator:
    configured = True

    def __init__(self, reply: str = "Generated text", *, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, list[dict[str, str]]]] = []
        self.closed = False

    async def complete(self, system_prompt: str, messages: Sequence[dict[str, str]] = ()) -> str:
        self.calls.append((system_prompt, list(messages)))
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def cache(store: MemoryCache) -> VideoCache:
    return VideoCache(store)


@pytest.fixture
def metadata_provider() -> FakeMetadataProvider:
    return FakeMetadataProvider(make_metadata())


@pytest.fixture
def transcript_provider() -> FakeTranscriptProvider:
    return FakeTranscriptProvider(make_transcript())


@pytest.fixture
def processor(
    cache: VideoCache,
    metadata_provider: FakeMetadataProvider,
    transcript_provider: FakeTranscriptProvider,
) -> VideoProcessor:
    return VideoProcessor(cache, metadata_provider, transcript_provider, ttls=CacheTTLs())
