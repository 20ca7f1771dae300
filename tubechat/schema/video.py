"""Pydantic models for video artifacts and the YouTube endpoints."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

UNKNOWN_CHANNEL = "Unknown Channel"
UNKNOWN_DURATION = "Unknown"
UNKNOWN_DATE = "Unknown Date"


class ProcessingStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoMetadata(BaseModel):
    video_id: str
    title: str
    description: str = ""
    duration: str = UNKNOWN_DURATION
    channel_name: str = UNKNOWN_CHANNEL
    thumbnail_url: str = ""
    published_date: str = UNKNOWN_DATE
    view_count: str = "0"
    degraded: bool = False

    @classmethod
    def placeholder(cls, video_id: str, *, reason: str) -> VideoMetadata:
        """Build the stand-in record served when the Data API cannot be used."""

        return cls(
            video_id=video_id,
            title=f"YouTube Video {video_id}",
            description=f"Video details are temporarily unavailable ({reason}).",
            thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            degraded=True,
        )


class TranscriptSegment(BaseModel):
    text: str
    start: float
    duration: float = 0.0


class Transcript(BaseModel):
    text: str
    segments: list[TranscriptSegment] = Field(default_factory=list)

    @classmethod
    def from_segments(cls, segments: list[TranscriptSegment]) -> Transcript:
        ordered = sorted(segments, key=lambda segment: segment.start)
        text = " ".join(segment.text for segment in ordered if segment.text)
        return cls(text=text, segments=ordered)


class VideoData(BaseModel):
    metadata: VideoMetadata
    transcript: Transcript | None = None


class ProcessResult(BaseModel):
    status: ProcessingStatus
    data: VideoData | None = None
    error: str | None = None


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    text: str
    related_timestamp: int | None = None


class DetectRequest(BaseModel):
    text: str


class DetectResponse(BaseModel):
    urls: list[str]
    video_ids: list[str]
    has_content: bool


class ProcessRequest(BaseModel):
    video_id: str


class TranscriptResponse(BaseModel):
    video_id: str
    transcript: Transcript
    cached: bool


class SummaryResponse(BaseModel):
    video_id: str
    summary: str
    cached: bool
    transcript_used: bool


class QARequest(BaseModel):
    video_id: str
    question: str = Field(min_length=1)
    metadata: VideoMetadata
    transcript: Transcript | None = None
    summary: str | None = None
    history: list[ConversationTurn] = Field(default_factory=list)


class QAResponse(BaseModel):
    video_id: str
    answer: str
    related_timestamp: int | None = None
    fallback: bool = False
