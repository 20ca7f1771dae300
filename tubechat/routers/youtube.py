"""API endpoints for YouTube link detection, processing, summaries and Q&A."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse

from tubechat.schema.video import (
    DetectRequest,
    DetectResponse,
    ProcessingStatus,
    ProcessRequest,
    ProcessResult,
    QARequest,
    QAResponse,
    SummaryResponse,
    TranscriptResponse,
)
from tubechat.services.container import Services, get_services
from tubechat.services.generator import GeneratorError
from tubechat.services.orchestrator import NOT_FOUND
from tubechat.services.summary_service import SummaryStatus
from tubechat.services.url_detector import VideoIdError, detect, extract_video_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/youtube", tags=["youtube"])


def _require_video_id(raw: str) -> str:
    try:
        return extract_video_id(raw)
    except VideoIdError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/detect", response_model=DetectResponse)
async def detect_urls(payload: DetectRequest) -> DetectResponse:
    if not payload.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Text is required")

    result = detect(payload.text)
    return DetectResponse(urls=result.urls, video_ids=result.video_ids, has_content=result.has_content)


@router.post("/process", response_model=ProcessResult, response_model_exclude_none=True)
async def process_video(
    payload: ProcessRequest,
    services: Services = Depends(get_services),
) -> ProcessResult:
    video_id = _require_video_id(payload.video_id)
    result = await services.processor.ensure_processed(video_id)

    if result.status is ProcessingStatus.FAILED:
        if result.error == NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to process YouTube video")
    return result


@router.get("/{video_id}/transcript", response_model=TranscriptResponse)
async def get_transcript(video_id: str, services: Services = Depends(get_services)) -> TranscriptResponse:
    video_id = _require_video_id(video_id)
    try:
        lookup = await services.processor.get_transcript(video_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Transcript lookup failed", extra={"video_id": video_id})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to get transcript") from exc

    if lookup.transcript is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transcript not available for this video",
        )
    return TranscriptResponse(video_id=video_id, transcript=lookup.transcript, cached=lookup.cached)


@router.get("/{video_id}/summary", response_model=SummaryResponse)
async def get_summary(video_id: str, services: Services = Depends(get_services)) -> SummaryResponse | JSONResponse:
    video_id = _require_video_id(video_id)
    lookup = await services.summaries.get_or_create_summary(video_id)

    if lookup.status is SummaryStatus.PROCESSING:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"video_id": video_id, "status": ProcessingStatus.PROCESSING.value},
        )
    if lookup.status is SummaryStatus.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video information not available")
    if lookup.status is SummaryStatus.UNAVAILABLE or lookup.summary is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Summary unavailable")

    return SummaryResponse(
        video_id=video_id,
        summary=lookup.summary,
        cached=lookup.cached,
        transcript_used=lookup.transcript_used,
    )


@router.post("/qa", response_model=QAResponse)
async def ask_question(payload: QARequest, services: Services = Depends(get_services)) -> QAResponse:
    video_id = _require_video_id(payload.video_id)
    try:
        result = await services.qa.ask(
            video_id,
            payload.question,
            payload.metadata,
            transcript=payload.transcript,
            summary=payload.summary,
            history=payload.history,
        )
    except GeneratorError as exc:
        logger.warning("Q&A failed: %s", exc, extra={"video_id": video_id})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Unable to answer question") from exc

    return QAResponse(
        video_id=video_id,
        answer=result.answer,
        related_timestamp=result.related_timestamp,
        fallback=result.fallback,
    )


@router.delete("/{video_id}/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_video_cache(video_id: str, services: Services = Depends(get_services)) -> Response:
    video_id = _require_video_id(video_id)
    await services.processor.invalidate(video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
