"""System prompt assembly with chat-wide context."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly assistant in a Telegram chat for university applicants. "
    "Answer concisely in the language of the question. Format replies with "
    "Telegram Markdown: *bold*, _italic_, `code` and [links](https://example.com)."
)


def _read_config(filename: str) -> str:
    """Read a config markdown file, returning empty string if missing."""
    path = CONFIG_DIR / filename
    if path.exists():
        return path.read_text(encoding="utf-8")
    return ""


def build_system_prompt(chat_context: str = "", extra: list[str] | None = None) -> str:
    """Assemble the system prompt.

    Args:
        chat_context: Rendered chat-wide memory snippet, appended last.
        extra: Additional sections (e.g. system-role history entries).
    """
    base = _read_config("SYSTEM.md").strip() or DEFAULT_SYSTEM_PROMPT
    sections = [base]
    if extra:
        sections.extend(extra)
    if chat_context:
        sections.append(chat_context)
    return "\n\n".join(sections)
