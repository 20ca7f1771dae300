"""Chat-completion client shared by the summary and Q&A services."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError

logger = logging.getLogger(__name__)


class GeneratorError(RuntimeError):
    """Raised when the language model call fails or returns nothing usable."""


class TextGenerator(Protocol):
    async def complete(self, system_prompt: str, messages: Sequence[dict[str, str]] = ()) -> str: ...


class OpenAIGenerator:
    """Thin wrapper over the chat completions endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 15.0,
        max_tokens: int = 500,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = client
        if self._client is None and api_key:
            kwargs: dict[str, object] = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
            if base_url:
                kwargs["base_url"] = base_url
            self._client = AsyncOpenAI(**kwargs)

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[dict[str, str]] = (),
        *,
        temperature: float = 0.7,
    ) -> str:
        """Send ``system_prompt`` plus ``messages`` and return the reply text."""

        if self._client is None:
            raise GeneratorError("OpenAI API key is not configured")

        logger.debug("Requesting chat completion", extra={"model": self._model, "turns": len(messages)})

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "system", "content": system_prompt}, *messages],
                max_tokens=self._max_tokens,
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise GeneratorError(f"Language model request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise GeneratorError("Language model returned an empty response")
        return content.strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


__all__ = ["GeneratorError", "OpenAIGenerator", "TextGenerator"]
