"""Message delivery with a plain-text fallback for rejected Markdown."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram.constants import ParseMode
from telegram.error import BadRequest

from admission_bot.formatting import strip_markup

if TYPE_CHECKING:
    import telegram

logger = logging.getLogger(__name__)

MAX_MESSAGE_CHARS = 4096

_MARKUP_ERROR_MARKERS = ("can't parse entities", "can't find end")


def chunk_message(text: str, max_len: int = MAX_MESSAGE_CHARS) -> list[str]:
    """Split a long message into chunks that fit Telegram's limit.

    Splits at newline boundaries where possible.
    """
    if len(text) <= max_len:
        return [text]

    chunks = []
    while text:
        if len(text) <= max_len:
            chunks.append(text)
            break

        split_at = text.rfind("\n", 0, max_len)
        if split_at <= 0:
            split_at = max_len

        chunks.append(text[:split_at])
        text = text[split_at:].lstrip("\n")

    return chunks


def is_markup_error(exc: BadRequest) -> bool:
    """True when Telegram rejected the message because of its entities."""
    message = exc.message.lower()
    return any(marker in message for marker in _MARKUP_ERROR_MARKERS)


async def _send_chunk(
    bot: telegram.Bot, chat_id: int, text: str, reply_to: int | None
) -> telegram.Message:
    try:
        return await bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=ParseMode.MARKDOWN,
            reply_to_message_id=reply_to,
        )
    except BadRequest as exc:
        if not is_markup_error(exc):
            raise
        logger.warning("Markdown rejected in chat %s (%s), resending as plain text", chat_id, exc)

    # A failure here propagates to the application error handler.
    return await bot.send_message(
        chat_id=chat_id,
        text=strip_markup(text) or text,
        reply_to_message_id=reply_to,
    )


async def send_formatted(
    bot: telegram.Bot, chat_id: int, text: str, *, reply_to: int | None = None
) -> list[telegram.Message]:
    """Send Markdown text, falling back to plain text once per chunk."""
    chunks = chunk_message(text)
    if len(chunks) > 1:
        logger.info("Long reply split into %d messages (%d chars)", len(chunks), len(text))
    return [await _send_chunk(bot, chat_id, chunk, reply_to) for chunk in chunks]
