"""Cache-backed, idempotent processing of a single YouTube video.

``ensure_processed`` follows a fixed order so concurrent callers for the same
video back off instead of repeating the provider calls:

1. an in-flight ``processing`` marker short-circuits with ``processing``;
2. cached metadata plus a cached transcript entry short-circuit with ``completed``;
3. the marker is written with a short TTL so abandoned runs expire on their own;
4. metadata is fetched, a missing video ends the run as ``failed``;
5. the transcript is fetched, its absence is not an error;
6. results are cached with per-artifact TTLs and the marker becomes ``completed``;
7. any exception during 4-6 leaves the marker at ``failed``.

The marker is advisory: two callers racing between the read in step 1 and the
write in step 3 may both run. Cache writes are whole-value overwrites, so a
duplicate run only costs the extra provider calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from tubechat.core.config import Settings
from tubechat.schema.video import ProcessingStatus, ProcessResult, Transcript, VideoData, VideoMetadata
from tubechat.services.cache import VideoCache

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"


class MetadataProvider(Protocol):
    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None: ...


class TranscriptProvider(Protocol):
    async def get_transcript(self, video_id: str) -> Transcript | None: ...


@dataclass(slots=True)
class CacheTTLs:
    metadata: float = 3600
    degraded_metadata: float = 300
    transcript: float = 7200
    summary: float = 7200
    processing: float = 300

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheTTLs:
        return cls(
            metadata=settings.metadata_ttl_seconds,
            degraded_metadata=settings.degraded_metadata_ttl_seconds,
            transcript=settings.transcript_ttl_seconds,
            summary=settings.summary_ttl_seconds,
            processing=settings.processing_ttl_seconds,
        )


@dataclass(slots=True)
class TranscriptLookup:
    """Outcome of a transcript request; ``transcript`` is None when none exists."""

    transcript: Transcript | None
    cached: bool

    @property
    def found(self) -> bool:
        return self.transcript is not None


class VideoProcessor:
    """Coordinates the cache and the two providers for one video at a time."""

    def __init__(
        self,
        cache: VideoCache,
        metadata_provider: MetadataProvider,
        transcript_provider: TranscriptProvider,
        *,
        ttls: CacheTTLs | None = None,
    ) -> None:
        self.cache = cache
        self.metadata_provider = metadata_provider
        self.transcript_provider = transcript_provider
        self.ttls = ttls or CacheTTLs()

    async def ensure_processed(self, video_id: str) -> ProcessResult:
        status = await self.cache.get_status(video_id)
        if status is ProcessingStatus.PROCESSING:
            logger.info("Video already being processed", extra={"video_id": video_id})
            return ProcessResult(status=ProcessingStatus.PROCESSING)

        cached_metadata = await self.cache.get_metadata(video_id)
        cached_transcript = await self.cache.get_transcript(video_id)
        if cached_metadata is not None and cached_transcript is not None:
            return ProcessResult(
                status=ProcessingStatus.COMPLETED,
                data=VideoData(metadata=cached_metadata, transcript=cached_transcript.transcript),
            )

        await self.cache.set_status(video_id, ProcessingStatus.PROCESSING, self.ttls.processing)

        try:
            metadata = await self.metadata_provider.get_video_metadata(video_id)
            if metadata is None:
                logger.info("Video not found; marking failed", extra={"video_id": video_id})
                await self.cache.set_status(video_id, ProcessingStatus.FAILED, self.ttls.processing)
                return ProcessResult(status=ProcessingStatus.FAILED, error=NOT_FOUND)

            transcript = await self.transcript_provider.get_transcript(video_id)
            if transcript is None:
                logger.info("Completing without transcript", extra={"video_id": video_id})

            metadata_ttl = self.ttls.degraded_metadata if metadata.degraded else self.ttls.metadata
            await self.cache.set_metadata(metadata, metadata_ttl)
            await self.cache.set_transcript(video_id, transcript, self.ttls.transcript)
            await self.cache.set_status(video_id, ProcessingStatus.COMPLETED, self.ttls.processing)
        except Exception as exc:
            logger.exception("Video processing failed", extra={"video_id": video_id})
            await self.cache.set_status(video_id, ProcessingStatus.FAILED, self.ttls.processing)
            return ProcessResult(status=ProcessingStatus.FAILED, error=str(exc) or type(exc).__name__)

        return ProcessResult(
            status=ProcessingStatus.COMPLETED,
            data=VideoData(metadata=metadata, transcript=transcript),
        )

    async def get_transcript(self, video_id: str) -> TranscriptLookup:
        """Return the transcript from cache, fetching and caching it on a miss.

        Provider errors propagate; callers decide how to report them.
        """

        entry = await self.cache.get_transcript(video_id)
        if entry is not None:
            return TranscriptLookup(transcript=entry.transcript, cached=True)

        transcript = await self.transcript_provider.get_transcript(video_id)
        await self.cache.set_transcript(video_id, transcript, self.ttls.transcript)
        return TranscriptLookup(transcript=transcript, cached=False)

    async def get_status(self, video_id: str) -> ProcessingStatus | None:
        return await self.cache.get_status(video_id)

    async def invalidate(self, video_id: str) -> None:
        """Drop every cached artifact for the video, including its marker."""

        await self.cache.clear(video_id)
        logger.info("Cleared cached video artifacts", extra={"video_id": video_id})


__all__ = ["CacheTTLs", "NOT_FOUND", "TranscriptLookup", "VideoProcessor"]
