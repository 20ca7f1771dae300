"""Question answering grounded in a single video's metadata, summary and transcript."""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Sequence

from tubechat.schema.video import ConversationTurn, Transcript, VideoMetadata
from tubechat.services.generator import GeneratorError, TextGenerator

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(r"(?<![\d:])(?:(\d{1,2}):)?(\d{1,3}):([0-5]\d)(?![\d:])")

FALLBACK_ANSWERS = (
    "Sorry, I couldn't look into that just now. Please try asking again in a moment.",
    "I'm having trouble reaching the video assistant right now. Try rephrasing or asking again shortly.",
    "That question can't be answered at the moment. The video details are still available above.",
)

QA_INSTRUCTIONS = """You are an assistant that answers questions about one YouTube video.
Rules:
1. Answer only from the video information below; do not use outside knowledge.
2. If the answer is not in the provided content, say that the video does not cover it.
3. When the answer relates to a specific moment, include its timestamp as mm:ss.
4. Keep answers concise and accurate."""


def format_timestamp(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def extract_timestamp(answer: str) -> int | None:
    """Return the first ``mm:ss`` or ``h:mm:ss`` reference in ``answer`` as seconds."""

    match = _TIMESTAMP_RE.search(answer)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)


def build_video_context(
    metadata: VideoMetadata,
    transcript: Transcript | None = None,
    summary: str | None = None,
) -> str:
    description = metadata.description[:500]
    if len(metadata.description) > 500:
        description += "..."

    sections = [
        "Video information:\n"
        f"- Title: {metadata.title}\n"
        f"- Channel: {metadata.channel_name}\n"
        f"- Duration: {metadata.duration}\n"
        f"- Published: {metadata.published_date}\n"
        f"- Description: {description}"
    ]
    if summary:
        sections.append(f"Video summary:\n{summary}")
    if transcript is not None and transcript.segments:
        lines = [f"[{format_timestamp(segment.start)}] {segment.text}" for segment in transcript.segments]
        sections.append("Video transcript:\n" + "\n".join(lines))
    return "\n\n".join(sections)


@dataclass(slots=True)
class QAResult:
    """An answer for the user plus, on fallback, the error that caused it."""

    answer: str
    related_timestamp: int | None = None
    fallback: bool = False
    error: str | None = None


class QASession:
    def __init__(
        self,
        generator: TextGenerator,
        *,
        history_limit: int = 6,
        fallback_enabled: bool = True,
    ) -> None:
        self.generator = generator
        self.history_limit = history_limit
        self.fallback_enabled = fallback_enabled

    def build_messages(self, question: str, history: Sequence[ConversationTurn]) -> list[dict[str, str]]:
        tail = list(history)[-self.history_limit :] if self.history_limit > 0 else []
        messages = [{"role": turn.role, "content": turn.text} for turn in tail]
        messages.append({"role": "user", "content": question})
        return messages

    async def ask(
        self,
        video_id: str,
        question: str,
        metadata: VideoMetadata,
        transcript: Transcript | None = None,
        summary: str | None = None,
        history: Sequence[ConversationTurn] = (),
    ) -> QAResult:
        system_prompt = f"{QA_INSTRUCTIONS}\n\n{build_video_context(metadata, transcript, summary)}"
        messages = self.build_messages(question, history)

        try:
            answer = await self.generator.complete(system_prompt, messages)
        except Exception as exc:
            if not self.fallback_enabled:
                if isinstance(exc, GeneratorError):
                    raise
                raise GeneratorError(str(exc)) from exc
            logger.warning(
                "Q&A generation failed; serving fallback answer: %s",
                exc,
                extra={"video_id": video_id},
            )
            return QAResult(
                answer=random.choice(FALLBACK_ANSWERS),
                fallback=True,
                error=str(exc) or type(exc).__name__,
            )

        return QAResult(answer=answer, related_timestamp=extract_timestamp(answer))


__all__ = [
    "FALLBACK_ANSWERS",
    "QAResult",
    "QASession",
    "build_video_context",
    "extract_timestamp",
    "format_timestamp",
]
