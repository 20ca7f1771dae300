"""Detection and normalisation of YouTube video links in free text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

VIDEO_ID_LENGTH = 11
VIDEO_ID_REGEX = re.compile(r"^[0-9A-Za-z_-]{11}$")
YOUTUBE_URL_REGEX = re.compile(
    r"https?://(?:www\.|m\.)?"
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/)"
    r"([^&\s?#]+)",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = ".,;:!)]}>\"'"


class VideoIdError(ValueError):
    """Raised when a value cannot be normalised into a YouTube video id."""


@dataclass(slots=True)
class DetectionResult:
    urls: list[str] = field(default_factory=list)
    video_ids: list[str] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.video_ids)


def _canonical_id(token: str) -> str | None:
    candidate = token[:VIDEO_ID_LENGTH]
    if len(candidate) == VIDEO_ID_LENGTH and VIDEO_ID_REGEX.match(candidate):
        return candidate
    return None


def detect(text: str) -> DetectionResult:
    """Find YouTube links in ``text`` and the video ids they reference.

    Links and ids are returned in order of appearance, duplicates included.
    When the text holds no link but is itself a bare id, that id is returned.
    """

    result = DetectionResult()
    for match in YOUTUBE_URL_REGEX.finditer(text):
        result.urls.append(match.group(0).rstrip(_TRAILING_PUNCTUATION))
        video_id = _canonical_id(match.group(1))
        if video_id:
            result.video_ids.append(video_id)

    if not result.urls:
        bare = text.strip()
        if VIDEO_ID_REGEX.match(bare):
            result.video_ids.append(bare)

    return result


def extract_video_id(raw: str) -> str:
    """Normalise a single URL or bare id into the canonical 11-character video id."""

    value = raw.strip()
    if not value:
        raise VideoIdError("Empty video identifier")

    if VIDEO_ID_REGEX.match(value):
        return value

    match = YOUTUBE_URL_REGEX.search(value)
    if match:
        video_id = _canonical_id(match.group(1))
        if video_id:
            return video_id

    raise VideoIdError("Unsupported YouTube video identifier")


__all__ = ["DetectionResult", "VideoIdError", "detect", "extract_video_id"]
