"""Telegram application factory."""

from __future__ import annotations

import logging

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from admission_bot.bot.handlers import (
    handle_clear_memory,
    handle_error,
    handle_message,
    handle_new_members,
    handle_start,
)
from admission_bot.bot.responder import Responder
from admission_bot.config import settings
from admission_bot.enrichment import ContextEnricher
from admission_bot.memory import ChatMemory, HistoryCompactor, HistoryStore, MemoryConfig

logger = logging.getLogger(__name__)


def _init_services(app: Application) -> None:
    """Construct the shared memory services once and expose them to handlers."""
    config = MemoryConfig.from_settings()
    history = HistoryStore(compactor=HistoryCompactor(), config=config)
    chat_memory = ChatMemory(limit=config.chat_memory_limit)
    responder = Responder(history=history, chat_memory=chat_memory, enricher=ContextEnricher())

    app.bot_data["history"] = history
    app.bot_data["chat_memory"] = chat_memory
    app.bot_data["responder"] = responder
    logger.info(
        "Memory: max %d tokens (compact above %.0f), %d entries per user, %d per chat",
        config.max_history_tokens,
        config.compact_trigger,
        config.history_max_entries,
        config.chat_memory_limit,
    )


def create_app() -> Application:
    """Build and configure the Telegram application."""
    app = Application.builder().token(settings.telegram_bot_token).concurrent_updates(True).build()

    _init_services(app)

    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler(["clear_memory", "clear"], handle_clear_memory))
    app.add_handler(MessageHandler(filters.StatusUpdate.NEW_CHAT_MEMBERS, handle_new_members))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_error_handler(handle_error)

    return app
