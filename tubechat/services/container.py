"""Construction and lifecycle of the service graph used by the HTTP layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from tubechat.core.config import Settings
from tubechat.services.cache import CacheStore, VideoCache, build_cache_store
from tubechat.services.generator import OpenAIGenerator
from tubechat.services.metadata_provider import YouTubeMetadataProvider
from tubechat.services.orchestrator import CacheTTLs, VideoProcessor
from tubechat.services.qa_session import QASession
from tubechat.services.summary_service import SummaryService
from tubechat.services.transcript_provider import YouTubeTranscriptProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    store: CacheStore
    http_client: httpx.AsyncClient
    generator: OpenAIGenerator
    processor: VideoProcessor
    summaries: SummaryService
    qa: QASession

    async def start(self) -> None:
        await self.store.connect()
        if not self.generator.configured:
            logger.warning("OpenAI API key not configured; summaries and Q&A will be unavailable")

    async def close(self) -> None:
        await self.generator.close()
        await self.http_client.aclose()
        await self.store.close()


def build_services(settings: Settings) -> Services:
    """Wire the cache, providers and services from configuration."""

    store = build_cache_store(settings.redis_url, max_entries=settings.memory_cache_max_entries)
    http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    generator = OpenAIGenerator(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.provider_timeout_seconds,
        max_tokens=settings.openai_max_tokens,
    )
    processor = VideoProcessor(
        VideoCache(store),
        YouTubeMetadataProvider(
            http_client,
            api_key=settings.youtube_api_key,
            timeout=settings.provider_timeout_seconds,
        ),
        YouTubeTranscriptProvider(
            languages=settings.transcript_languages,
            timeout=settings.provider_timeout_seconds,
        ),
        ttls=CacheTTLs.from_settings(settings),
    )
    return Services(
        store=store,
        http_client=http_client,
        generator=generator,
        processor=processor,
        summaries=SummaryService(processor, generator, max_transcript_chars=settings.openai_max_chars),
        qa=QASession(
            generator,
            history_limit=settings.qa_history_limit,
            fallback_enabled=settings.qa_fallback_enabled,
        ),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services attached at startup."""

    return request.app.state.services


__all__ = ["Services", "build_services", "get_services"]
