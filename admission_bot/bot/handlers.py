"""Telegram message and command handlers.

Shared services (``Responder``, ``HistoryStore``, ``ChatMemory``) live in
``context.bot_data`` so handlers stay plain functions.
"""

from __future__ import annotations

import contextlib
import logging
import re
from typing import TYPE_CHECKING

from telegram import Update
from telegram.constants import ChatAction, ChatType
from telegram.ext import ContextTypes

from admission_bot.bot.delivery import send_formatted

if TYPE_CHECKING:
    from telegram import Message, User

    from admission_bot.bot.responder import Responder
    from admission_bot.memory import ChatMemory, HistoryStore

logger = logging.getLogger(__name__)

GREETING = (
    "Вітаю! Я бот-помічник для вступників. Поставте своє питання, "
    "а в групі згадайте мене або відповідайте на моє повідомлення. "
    "/clear_memory очищає історію нашої розмови."
)
WELCOME = "Вітаємо в чаті! Якщо маєте питання про вступ, просто запитайте мене."
MEMORY_CLEARED = "Історію нашої розмови очищено."


def _author(user: User) -> str:
    if user.username:
        return f"@{user.username}"
    return user.full_name or str(user.id)


def _is_reply_to_bot(message: Message, bot_id: int) -> bool:
    reply = message.reply_to_message
    return bool(reply and reply.from_user and reply.from_user.id == bot_id)


def _strip_mention(text: str, bot_username: str) -> str:
    if not bot_username:
        return text.strip()
    return re.sub(rf"@{re.escape(bot_username)}\b", "", text, flags=re.IGNORECASE).strip()


def should_respond(message: Message, bot_username: str, bot_id: int) -> bool:
    """Private chats always; groups only on mention or reply to the bot."""
    if message.chat.type == ChatType.PRIVATE:
        return True
    mentioned = bool(bot_username) and f"@{bot_username.lower()}" in (message.text or "").lower()
    return mentioned or _is_reply_to_bot(message, bot_id)


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: greet the user."""
    await update.message.reply_text(GREETING)


async def handle_clear_memory(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clear_memory: forget this user's history in this chat."""
    if update.effective_user is None:
        return

    history: HistoryStore = context.bot_data["history"]
    count = await history.clear(update.effective_chat.id, update.effective_user.id)
    logger.info(
        "Cleared %d history entries for chat=%s user=%s",
        count,
        update.effective_chat.id,
        update.effective_user.id,
    )
    await update.message.reply_text(MEMORY_CLEARED)


async def handle_new_members(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Welcome people who join the chat."""
    message = update.effective_message
    if any(member.id == context.bot.id for member in message.new_chat_members):
        return
    await message.reply_text(WELCOME)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Record every text message; answer the ones addressed to the bot."""
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None or not message.text:
        return

    chat_id = update.effective_chat.id
    chat_memory: ChatMemory = context.bot_data["chat_memory"]
    chat_memory.record(chat_id, message.text, _author(user))

    bot_username = context.bot.username or ""
    if not should_respond(message, bot_username, context.bot.id):
        return

    user_message = _strip_mention(message.text, bot_username)
    if not user_message:
        return

    logger.info("Message from chat=%s user=%s: %s", chat_id, user.id, user_message[:80])

    with contextlib.suppress(Exception):
        await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

    responder: Responder = context.bot_data["responder"]
    reply = await responder.respond(user_message, chat_id, user.id)
    await send_formatted(context.bot, chat_id, reply, reply_to=message.message_id)


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors that escaped a handler; only that update is affected."""
    chat_id = "unknown"
    if isinstance(update, Update) and update.effective_chat:
        chat_id = str(update.effective_chat.id)
    logger.error("Unhandled error for chat=%s", chat_id, exc_info=context.error)
