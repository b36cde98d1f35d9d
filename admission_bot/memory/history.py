"""Per-user conversation history with token-aware compaction."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from admission_bot.memory.compactor import HistoryCompactor
from admission_bot.memory.models import ConversationEntry, ConversationKey, MemoryConfig
from admission_bot.memory.tokens import estimate_history_tokens

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class HistoryStore:
    """Bounded, insertion-ordered history per (chat, user).

    One instance is shared by every handler in the process. Appends and
    clears of the same key are serialized with a per-key lock, so append,
    compaction and trimming happen as one step even when the compaction
    call suspends, and a clear never lands in the middle of that step.
    """

    def __init__(
        self,
        compactor: HistoryCompactor | None = None,
        config: MemoryConfig | None = None,
    ) -> None:
        self._compactor = compactor or HistoryCompactor()
        self._config = config or MemoryConfig.from_settings()
        self._histories: dict[ConversationKey, list[ConversationEntry]] = {}
        self._locks: dict[ConversationKey, asyncio.Lock] = {}
        self._lock_users: dict[ConversationKey, int] = {}

    @property
    def config(self) -> MemoryConfig:
        return self._config

    @asynccontextmanager
    async def _exclusive(self, key: ConversationKey) -> AsyncIterator[None]:
        """Hold the lock for *key*; it is discarded once nobody holds or awaits it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def append(self, chat_id: int, user_id: int, role: str, content: str) -> None:
        """Append a turn, compacting and trimming the history if needed."""
        key = ConversationKey(chat_id, user_id)
        entry = ConversationEntry(role=role, content=content)

        async with self._exclusive(key):
            history = [*self._histories.get(key, []), entry]

            total = estimate_history_tokens(history)
            if total > self._config.compact_trigger:
                logger.info(
                    "History %s at ~%d tokens (trigger %d), compacting",
                    key,
                    total,
                    self._config.compact_trigger,
                )
                history = await self._compactor.compact(history)

            limit = self._config.history_max_entries
            if len(history) > limit:
                history = history[-limit:]

            while (
                len(history) > 1
                and estimate_history_tokens(history) > self._config.max_history_tokens
            ):
                history = history[1:]

            self._histories[key] = history

    def get(self, chat_id: int, user_id: int) -> list[ConversationEntry]:
        """Return a copy of the stored history, or an empty list."""
        return list(self._histories.get(ConversationKey(chat_id, user_id), []))

    async def clear(self, chat_id: int, user_id: int) -> int:
        """Forget a history. Returns the number of removed entries.

        Waits for an append in progress on the same key, so a compaction
        that was suspended cannot write the old history back afterwards.
        """
        key = ConversationKey(chat_id, user_id)
        async with self._exclusive(key):
            removed = self._histories.pop(key, [])
        return len(removed)
