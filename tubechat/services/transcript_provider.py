"""Transcript retrieval backed by youtube-transcript-api."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from youtube_transcript_api import (  # type: ignore[import-not-found]
    CouldNotRetrieveTranscript,
    RequestBlocked,
    YouTubeRequestFailed,
    YouTubeTranscriptApi,
)

from tubechat.schema.video import Transcript, TranscriptSegment

logger = logging.getLogger(__name__)


class TranscriptProviderError(RuntimeError):
    """Raised when the transcript lookup fails for a transient reason."""


class YouTubeTranscriptProvider:
    """Fetch time-coded captions; a video without captions yields None."""

    def __init__(
        self,
        *,
        languages: Sequence[str] = ("en", "en-US", "en-GB"),
        timeout: float = 15.0,
        api: YouTubeTranscriptApi | None = None,
    ) -> None:
        self._languages = list(languages)
        self._timeout = timeout
        self._api = api or YouTubeTranscriptApi()

    def _blocking_fetch(self, video_id: str) -> Transcript | None:
        fetched = self._api.fetch(video_id, languages=self._languages)

        segments: list[TranscriptSegment] = []
        for snippet in fetched:
            text = (snippet.text or "").strip()
            if not text:
                continue
            segments.append(
                TranscriptSegment(text=text, start=float(snippet.start), duration=float(snippet.duration or 0.0))
            )

        if not segments:
            return None
        return Transcript.from_segments(segments)

    async def get_transcript(self, video_id: str) -> Transcript | None:
        """Return the transcript, or None when captions are disabled or missing."""

        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, self._blocking_fetch, video_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TranscriptProviderError("Transcript request timed out") from exc
        except (RequestBlocked, YouTubeRequestFailed) as exc:
            raise TranscriptProviderError(str(exc)) from exc
        except CouldNotRetrieveTranscript as exc:
            logger.info(
                "Transcript unavailable",
                extra={"video_id": video_id, "reason": type(exc).__name__},
            )
            return None


__all__ = ["TranscriptProviderError", "YouTubeTranscriptProvider"]
