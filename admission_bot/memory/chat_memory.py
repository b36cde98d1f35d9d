"""Rolling per-chat log of observed messages, used as ambient context."""

import logging
from collections import deque

from admission_bot.memory.models import ChatMemoryEntry

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 200
SNIPPET_ENTRIES = 20
SNIPPET_HEADER = "## Recent messages in this chat"


class ChatMemory:
    """Keeps the last ``limit`` messages of every chat, independent of users."""

    def __init__(self, limit: int = 100) -> None:
        self._limit = limit
        self._chats: dict[int, deque[ChatMemoryEntry]] = {}

    def record(self, chat_id: int, content: str, author: str) -> None:
        """Append a message, evicting the oldest beyond the limit."""
        log = self._chats.get(chat_id)
        if log is None:
            log = self._chats[chat_id] = deque(maxlen=self._limit)
        log.append(ChatMemoryEntry(content=content[:MAX_CONTENT_CHARS], author=author))

    def entries(self, chat_id: int) -> list[ChatMemoryEntry]:
        return list(self._chats.get(chat_id, ()))

    def context_snippet(self, chat_id: int) -> str:
        """Render the most recent messages for the system prompt."""
        log = self._chats.get(chat_id)
        if not log:
            return ""
        recent = list(log)[-SNIPPET_ENTRIES:]
        lines = [SNIPPET_HEADER, ""]
        lines.extend(f"[{e.author}]: {e.content}" for e in recent)
        return "\n".join(lines)
