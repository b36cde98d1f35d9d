"""Character-based token estimation.

No tokenizer dependency: the estimate only gates compaction, it is never
used for billing.
"""

import math
from collections.abc import Iterable

from admission_bot.memory.models import ConversationEntry

CHARS_PER_TOKEN = 3.5


def estimate_tokens(text: str) -> int:
    """Approximate the model-token cost of *text*."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_history_tokens(entries: Iterable[ConversationEntry]) -> int:
    """Sum of per-entry estimates."""
    return sum(estimate_tokens(e.content) for e in entries)
