"""Conversation memory: per-user history and per-chat rolling context."""

from admission_bot.memory.chat_memory import ChatMemory
from admission_bot.memory.compactor import HistoryCompactor
from admission_bot.memory.history import HistoryStore
from admission_bot.memory.models import (
    ChatMemoryEntry,
    ConversationEntry,
    ConversationKey,
    MemoryConfig,
)
from admission_bot.memory.tokens import estimate_history_tokens, estimate_tokens

__all__ = [
    "ChatMemory",
    "ChatMemoryEntry",
    "ConversationEntry",
    "ConversationKey",
    "HistoryCompactor",
    "HistoryStore",
    "MemoryConfig",
    "estimate_history_tokens",
    "estimate_tokens",
]
