"""Response generation: memory + enrichment + Claude + formatting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import anthropic

from admission_bot.config import settings
from admission_bot.enrichment import ContextEnricher
from admission_bot.formatting import format_response
from admission_bot.llm.client import complete_text
from admission_bot.llm.prompt import build_system_prompt

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from admission_bot.memory import ChatMemory, ConversationEntry, HistoryStore

logger = logging.getLogger(__name__)

APOLOGY = "Вибачте, зараз не вдалося отримати відповідь. Спробуйте, будь ласка, трохи пізніше."

# The Messages API expects the first turn to come from the user.
CONTINUATION_TURN = "(continuing our earlier conversation)"


def to_api_messages(history: list[ConversationEntry], user_turn: str) -> list[dict[str, Any]]:
    """Replay non-system history as prior turns, then the new user turn."""
    messages = [e.to_api_message() for e in history if e.role != "system"]
    if messages and messages[0]["role"] != "user":
        messages.insert(0, {"role": "user", "content": CONTINUATION_TURN})
    messages.append({"role": "user", "content": user_turn})
    return messages


class Responder:
    """Builds the prompt for one user message and records the exchange.

    Shared memory objects are injected so the same instances serve every
    handler in the process.
    """

    def __init__(
        self,
        history: HistoryStore,
        chat_memory: ChatMemory,
        enricher: ContextEnricher | None = None,
        complete: Callable[..., Awaitable[str]] = complete_text,
        author_label: str | None = None,
    ) -> None:
        self._history = history
        self._chat_memory = chat_memory
        self._enricher = enricher or ContextEnricher()
        self._complete = complete
        self._author_label = author_label or settings.bot_author_label

    async def respond(self, user_message: str, chat_id: int, user_id: int) -> str:
        enrichment = await self._enricher.enrich(user_message)

        history = self._history.get(chat_id, user_id)
        system = build_system_prompt(
            chat_context=self._chat_memory.context_snippet(chat_id),
            extra=[e.content for e in history if e.role == "system"],
        )
        user_turn = user_message + (enrichment.render() if enrichment else "")
        messages = to_api_messages(history, user_turn)

        try:
            raw = await self._complete(
                messages,
                system=system,
                model=settings.claude_model,
                max_tokens=settings.chat_max_tokens,
                temperature=settings.chat_temperature,
            )
        except anthropic.APIError:
            logger.exception("Completion failed for chat=%s user=%s", chat_id, user_id)
            raw = APOLOGY

        if not raw.strip():
            logger.warning("Empty completion for chat=%s user=%s", chat_id, user_id)
            raw = APOLOGY

        reply = format_response(raw)

        await self._history.append(chat_id, user_id, "user", user_message)
        await self._history.append(chat_id, user_id, "assistant", reply)
        self._chat_memory.record(chat_id, reply, self._author_label)
        return reply
