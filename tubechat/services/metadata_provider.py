"""Video metadata lookups against the YouTube Data API."""

from __future__ import annotations

import logging
import re
from datetime import datetime

import httpx

from tubechat.schema.video import UNKNOWN_CHANNEL, UNKNOWN_DATE, VideoMetadata

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
_ISO_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")
_DEGRADED_REASONS = {
    "quotaExceeded",
    "dailyLimitExceeded",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "keyInvalid",
    "keyExpired",
    "accessNotConfigured",
    "forbidden",
    "API_KEY_INVALID",
    "API_KEY_SERVICE_BLOCKED",
}


class MetadataProviderError(RuntimeError):
    """Raised when the metadata lookup fails for reasons other than quota or a missing video."""


def format_duration(total_seconds: int) -> str:
    hours, remainder = divmod(max(total_seconds, 0), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def parse_iso_duration(value: str | None) -> int | None:
    """Convert an ISO 8601 duration such as ``PT1H2M3S`` into seconds."""

    if not value:
        return None
    match = _ISO_DURATION_RE.match(value.strip())
    if not match:
        return None
    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def _format_published(value: str | None) -> str:
    if not value:
        return UNKNOWN_DATE
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        published = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Failed to parse publish date", extra={"value": value})
        return UNKNOWN_DATE
    return f"{published:%B} {published.day}, {published.year}"


def _pick_thumbnail(thumbnails: dict) -> str:
    for size in ("maxres", "high", "medium", "standard", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


def _error_reasons(response: httpx.Response) -> set[str]:
    try:
        payload = response.json()
    except ValueError:
        return set()
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return set()
    reasons = {item.get("reason") for item in error.get("errors", []) if isinstance(item, dict)}
    reasons |= {item.get("reason") for item in error.get("details", []) if isinstance(item, dict)}
    reasons.discard(None)
    return reasons


def parse_video_item(video_id: str, item: dict) -> VideoMetadata:
    """Map a ``videos`` resource from the Data API into :class:`VideoMetadata`."""

    snippet = item.get("snippet") or {}
    details = item.get("contentDetails") or {}
    statistics = item.get("statistics") or {}

    seconds = parse_iso_duration(details.get("duration"))
    return VideoMetadata(
        video_id=video_id,
        title=snippet.get("title") or "Unknown Title",
        description=snippet.get("description") or "",
        duration=format_duration(seconds) if seconds is not None else "Unknown",
        channel_name=snippet.get("channelTitle") or UNKNOWN_CHANNEL,
        thumbnail_url=_pick_thumbnail(snippet.get("thumbnails") or {}),
        published_date=_format_published(snippet.get("publishedAt")),
        view_count=str(statistics.get("viewCount") or "0"),
    )


class YouTubeMetadataProvider:
    """Fetch video details; quota and credential problems yield a degraded placeholder."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None,
        timeout: float = 15.0,
        base_url: str = YOUTUBE_API_BASE,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    async def get_video_metadata(self, video_id: str) -> VideoMetadata | None:
        """Return metadata, a placeholder when degraded, or None when the video does not exist."""

        if not self._api_key:
            logger.warning(
                "YouTube API key not configured; serving placeholder metadata",
                extra={"video_id": video_id},
            )
            return VideoMetadata.placeholder(video_id, reason="api key not configured")

        params = {
            "part": "snippet,contentDetails,statistics",
            "id": video_id,
            "key": self._api_key,
        }
        try:
            response = await self._client.get(f"{self._base_url}/videos", params=params, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise MetadataProviderError("Unable to contact YouTube Data API") from exc

        if response.status_code == 404:
            return None

        if response.status_code in (400, 401, 403, 429):
            reasons = _error_reasons(response)
            if reasons & _DEGRADED_REASONS or response.status_code in (401, 403):
                reason = ", ".join(sorted(reasons)) or f"HTTP {response.status_code}"
                logger.warning(
                    "YouTube Data API degraded; serving placeholder metadata",
                    extra={"video_id": video_id, "reason": reason},
                )
                return VideoMetadata.placeholder(video_id, reason=reason)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MetadataProviderError(f"YouTube Data API returned {response.status_code}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataProviderError("Invalid response from YouTube Data API") from exc

        items = payload.get("items") or []
        if not items:
            logger.info("Video not found", extra={"video_id": video_id})
            return None
        return parse_video_item(video_id, items[0])


__all__ = [
    "MetadataProviderError",
    "YouTubeMetadataProvider",
    "format_duration",
    "parse_iso_duration",
    "parse_video_item",
]
