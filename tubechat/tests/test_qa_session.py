"""Tests for video-grounded question answering."""

from __future__ import annotations

import pytest

from conftest import VIDEO_ID, FakeGenerator, make_metadata, make_transcript
from tubechat.schema.video import ConversationTurn
from tubechat.services.generator import GeneratorError
from tubechat.services.qa_session import (
    FALLBACK_ANSWERS,
    QASession,
    build_video_context,
    extract_timestamp,
    format_timestamp,
)

pytest_plugins = ("pytest_asyncio",)


def _history(count: int) -> list[ConversationTurn]:
    return [
        ConversationTurn(role="user" if index % 2 == 0 else "assistant", text=f"turn {index}")
        for index in range(count)
    ]


@pytest.mark.parametrize(
    "answer,expected",
    [
        ("The chorus starts at 0:43.", 43),
        ("See [12:30] for details", 750),
        ("Around 1:02:03 he explains it", 3723),
        ("Two moments: 2:15 and 3:00", 135),
        ("No timestamp here", None),
        ("The ratio was 3:75", None),
    ],
)
def test_extract_timestamp(answer, expected):
    assert extract_timestamp(answer) == expected


def test_format_timestamp():
    assert format_timestamp(43.2) == "0:43"
    assert format_timestamp(754) == "12:34"


def test_context_renders_transcript_lines_and_summary():
    context = build_video_context(make_metadata(), make_transcript(), "It is a song.")

    assert "- Title: Never Gonna Give You Up" in context
    assert "Video summary:\nIt is a song." in context
    assert "[0:18] We're no strangers to love" in context
    assert "[0:43] Never gonna give you up" in context


def test_context_clips_long_descriptions():
    context = build_video_context(make_metadata(description="x" * 800))
    assert "x" * 500 + "..." in context
    assert "x" * 501 not in context


@pytest.mark.asyncio
async def test_ask_forwards_bounded_history():
    generator = FakeGenerator("The chorus arrives at 0:43.")
    session = QASession(generator, history_limit=6)

    result = await session.ask(
        VIDEO_ID,
        "When does the chorus start?",
        make_metadata(),
        make_transcript(),
        history=_history(10),
    )

    assert result.answer == "The chorus arrives at 0:43."
    assert result.related_timestamp == 43
    assert result.fallback is False
    system_prompt, messages = generator.calls[0]
    assert "Answer only from the video information" in system_prompt
    assert len(messages) == 7
    assert [message["content"] for message in messages[:6]] == [f"turn {index}" for index in range(4, 10)]
    assert messages[-1] == {"role": "user", "content": "When does the chorus start?"}


@pytest.mark.asyncio
async def test_ask_with_metadata_only():
    generator = FakeGenerator("The video does not cover that.")

    result = await QASession(generator).ask(VIDEO_ID, "Who directed it?", make_metadata())

    assert result.answer == "The video does not cover that."
    assert result.related_timestamp is None
    system_prompt, messages = generator.calls[0]
    assert "Video transcript" not in system_prompt
    assert "Video summary" not in system_prompt
    assert messages == [{"role": "user", "content": "Who directed it?"}]


@pytest.mark.asyncio
async def test_failure_returns_fallback_with_error():
    generator = FakeGenerator(error=GeneratorError("Language model request failed: 500"))

    result = await QASession(generator).ask(VIDEO_ID, "Anything?", make_metadata())

    assert result.fallback is True
    assert result.answer in FALLBACK_ANSWERS
    assert result.error == "Language model request failed: 500"
    assert result.related_timestamp is None


@pytest.mark.asyncio
async def test_unexpected_errors_also_fall_back():
    result = await QASession(FakeGenerator(error=KeyError("choices"))).ask(VIDEO_ID, "Anything?", make_metadata())
    assert result.fallback is True
    assert result.error


@pytest.mark.asyncio
async def test_fallback_can_be_disabled():
    session = QASession(FakeGenerator(error=ValueError("bad payload")), fallback_enabled=False)

    with pytest.raises(GeneratorError, match="bad payload"):
        await session.ask(VIDEO_ID, "Anything?", make_metadata())
