"""Cache-first generation of video summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from tubechat.schema.video import ProcessingStatus, Transcript, VideoMetadata
from tubechat.services.generator import GeneratorError, TextGenerator
from tubechat.services.orchestrator import NOT_FOUND, VideoProcessor

logger = logging.getLogger(__name__)

METADATA_ONLY_NOTE = (
    "_Note: no transcript was available for this video, so this summary is based on its "
    "title and description only and may lack detail._"
)

SUMMARY_SYSTEM_PROMPT = (
    "You are an assistant that writes clear, faithful summaries of YouTube videos."
    " Use only the information provided. Structure the answer in Markdown with exactly"
    " these sections: ## Overview, ## Key Points (a bulleted list), ## Details, ## Conclusion."
)


class SummaryStatus(str, Enum):
    READY = "ready"
    PROCESSING = "processing"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class SummaryLookup:
    status: SummaryStatus
    summary: str | None = None
    cached: bool = False
    transcript_used: bool = False
    error: str | None = None


def build_summary_prompt(metadata: VideoMetadata, transcript: Transcript | None, *, max_chars: int = 12000) -> str:
    lines = [
        f"Title: {metadata.title}",
        f"Channel: {metadata.channel_name}",
        f"Duration: {metadata.duration}",
        f"Published: {metadata.published_date}",
    ]
    description = metadata.description.strip()
    if description:
        if len(description) > 1000:
            description = description[:1000] + "…"
        lines.append(f"Description: {description}")

    prompt = "Summarise this video.\n\n" + "\n".join(lines)
    if transcript is not None and transcript.text:
        prompt += f"\n\nTranscript:\n{transcript.text[:max_chars]}"
    else:
        prompt += "\n\nNo transcript is available; summarise from the details above and keep it brief."
    return prompt


class SummaryService:
    def __init__(
        self,
        processor: VideoProcessor,
        generator: TextGenerator,
        *,
        max_transcript_chars: int = 12000,
    ) -> None:
        self.processor = processor
        self.generator = generator
        self.max_transcript_chars = max_transcript_chars

    async def _load_sources(self, video_id: str) -> tuple[SummaryLookup | None, VideoMetadata | None, Transcript | None]:
        cache = self.processor.cache
        metadata = await cache.get_metadata(video_id)
        if metadata is None:
            result = await self.processor.ensure_processed(video_id)
            if result.status is ProcessingStatus.PROCESSING:
                return SummaryLookup(status=SummaryStatus.PROCESSING), None, None
            if result.status is ProcessingStatus.FAILED or result.data is None:
                if result.error == NOT_FOUND:
                    return SummaryLookup(status=SummaryStatus.NOT_FOUND, error=NOT_FOUND), None, None
                return SummaryLookup(status=SummaryStatus.UNAVAILABLE, error=result.error), None, None
            return None, result.data.metadata, result.data.transcript

        try:
            lookup = await self.processor.get_transcript(video_id)
            transcript = lookup.transcript
        except Exception:
            logger.warning(
                "Transcript lookup failed; summarising from metadata",
                exc_info=True,
                extra={"video_id": video_id},
            )
            transcript = None
        return None, metadata, transcript

    async def get_or_create_summary(self, video_id: str) -> SummaryLookup:
        cache = self.processor.cache
        cached = await cache.get_summary(video_id)
        if cached:
            return SummaryLookup(
                status=SummaryStatus.READY,
                summary=cached,
                cached=True,
                transcript_used=METADATA_ONLY_NOTE not in cached,
            )

        early, metadata, transcript = await self._load_sources(video_id)
        if early is not None:
            return early

        prompt = build_summary_prompt(metadata, transcript, max_chars=self.max_transcript_chars)
        try:
            summary = await self.generator.complete(
                SUMMARY_SYSTEM_PROMPT, [{"role": "user", "content": prompt}]
            )
        except GeneratorError as exc:
            logger.warning("Summary generation failed: %s", exc, extra={"video_id": video_id})
            return SummaryLookup(status=SummaryStatus.UNAVAILABLE, error=str(exc))

        transcript_used = transcript is not None
        if not transcript_used:
            summary = f"{summary}\n\n{METADATA_ONLY_NOTE}"

        ttls = self.processor.ttls
        # a summary of placeholder metadata must not outlive the placeholder
        ttl = min(ttls.summary, ttls.degraded_metadata) if metadata.degraded else ttls.summary
        await cache.set_summary(video_id, summary, ttl)
        return SummaryLookup(
            status=SummaryStatus.READY,
            summary=summary,
            cached=False,
            transcript_used=transcript_used,
        )


__all__ = ["SummaryLookup", "SummaryService", "SummaryStatus", "build_summary_prompt"]
