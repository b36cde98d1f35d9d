"""Data models for conversation and chat memory."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import NamedTuple

from admission_bot.config import Settings, settings

ROLES = ("system", "user", "assistant")


def _now() -> datetime:
    return datetime.now(UTC)


class ConversationKey(NamedTuple):
    """Scopes one user's history inside one chat."""

    chat_id: int
    user_id: int


@dataclass(frozen=True)
class ConversationEntry:
    """A single conversation turn."""

    role: str  # "system", "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=_now)
    is_compacted: bool = False

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            msg = f"Invalid role '{self.role}'. Expected one of {', '.join(ROLES)}."
            raise ValueError(msg)

    def to_api_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatMemoryEntry:
    """One observed message in a chat's rolling log."""

    content: str
    author: str
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class MemoryConfig:
    """Size limits for the conversation memory."""

    max_history_tokens: int = 32000
    compact_to_tokens: int = 16000  # advisory target, not enforced
    compact_threshold: float = 0.8
    chat_memory_limit: int = 100
    history_max_entries: int = 25

    @property
    def compact_trigger(self) -> float:
        return self.max_history_tokens * self.compact_threshold

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "MemoryConfig":
        return cls(
            max_history_tokens=cfg.max_history_tokens,
            compact_to_tokens=cfg.compact_to_tokens,
            compact_threshold=cfg.compact_threshold,
            chat_memory_limit=cfg.chat_memory_limit,
            history_max_entries=cfg.history_max_entries,
        )
