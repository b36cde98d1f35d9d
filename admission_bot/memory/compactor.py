"""Lossy history compaction via an LLM-generated summary."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from admission_bot.config import settings
from admission_bot.llm.client import complete_text
from admission_bot.memory.models import ConversationEntry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

KEEP_RECENT = 3
FALLBACK_KEEP = 10
DIGEST_CHARS = 200
SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 200

SUMMARIZER_SYSTEM = "You produce concise, accurate conversation summaries."
DIGEST_INSTRUCTION = (
    "Summarize the following conversation in 2-3 sentences, "
    "preserving the key points:"
)


class HistoryCompactor:
    """Replaces the middle of a history with a single summary entry.

    The leading system entry (if any) and the three most recent entries are
    kept verbatim. Summarization is best-effort: if the call fails the
    history is cut down to its ten most recent entries instead.
    """

    def __init__(
        self,
        complete: Callable[..., Awaitable[str]] = complete_text,
        model: str | None = None,
    ) -> None:
        self._complete = complete
        self._model = model or settings.summary_model

    async def compact(self, history: list[ConversationEntry]) -> list[ConversationEntry]:
        if len(history) <= KEEP_RECENT:
            return history

        head: list[ConversationEntry] = []
        start = 0
        if history[0].role == "system":
            head = [history[0]]
            start = 1

        middle = history[start:-KEEP_RECENT]
        tail = history[-KEEP_RECENT:]
        if not middle:
            return history

        digest = "\n".join(f"{e.role}: {e.content[:DIGEST_CHARS]}..." for e in middle)
        try:
            summary = await self._complete(
                [{"role": "user", "content": f"{DIGEST_INSTRUCTION}\n\n{digest}"}],
                system=SUMMARIZER_SYSTEM,
                model=self._model,
                max_tokens=SUMMARY_MAX_TOKENS,
                temperature=SUMMARY_TEMPERATURE,
            )
        except Exception:
            logger.exception("History summarization failed, keeping last %d entries", FALLBACK_KEEP)
            return history[-FALLBACK_KEEP:]

        summary = summary.strip()
        if not summary:
            logger.warning("Summarizer returned empty text, keeping last %d entries", FALLBACK_KEEP)
            return history[-FALLBACK_KEEP:]

        logger.info("Compacted %d entries into a summary", len(middle))
        summary_entry = ConversationEntry(
            role="assistant",
            content=f"[Summary of prior conversation: {summary}]",
            is_compacted=True,
        )
        return [*head, summary_entry, *tail]
