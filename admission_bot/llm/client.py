"""Async Claude API client."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from admission_bot.config import settings

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout,
            max_retries=0,
        )
    return _client


async def complete_text(
    messages: list[dict[str, Any]],
    *,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 4096,
    temperature: float | None = None,
) -> str:
    """Single-shot Claude call, no streaming.

    Used both for chat replies and for history summarization. Errors from
    the SDK (``anthropic.APIError`` and subclasses) propagate to the caller.
    """
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or settings.claude_model,
        "max_tokens": max_tokens,
        "messages": messages,
    }
    if system is not None:
        kwargs["system"] = system
    if temperature is not None:
        kwargs["temperature"] = temperature
    response = await client.messages.create(**kwargs)
    text = "".join(block.text for block in response.content if block.type == "text")
    logger.debug(
        "Completion: model=%s, %d message(s) in, %d chars out",
        kwargs["model"],
        len(messages),
        len(text),
    )
    return text
