"""Tests for Telegram handlers and application wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.constants import ChatType

from admission_bot.bot.app import create_app
from admission_bot.bot.handlers import (
    GREETING,
    MEMORY_CLEARED,
    WELCOME,
    handle_clear_memory,
    handle_error,
    handle_message,
    handle_new_members,
    handle_start,
    should_respond,
)
from admission_bot.bot.responder import Responder
from admission_bot.memory import ChatMemory, HistoryStore, MemoryConfig

BOT_ID = 999
BOT_USERNAME = "admission_bot"


def _make_user(
    user_id: int = 10, username: str | None = "anna", full_name: str = "Anna K"
) -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.username = username
    user.full_name = full_name
    return user


def _make_update(
    text: str = "hi",
    chat_type: str = ChatType.PRIVATE,
    reply_to_bot: bool = False,
    user: MagicMock | None = None,
) -> MagicMock:
    message = MagicMock()
    message.text = text
    message.message_id = 55
    message.chat.type = chat_type
    message.reply_text = AsyncMock()
    if reply_to_bot:
        message.reply_to_message.from_user.id = BOT_ID
    else:
        message.reply_to_message = None

    update = MagicMock()
    update.effective_message = message
    update.message = message
    update.effective_user = user or _make_user()
    update.effective_chat.id = 1
    return update


def _make_context(
    responder: MagicMock | None = None, history: HistoryStore | None = None
) -> MagicMock:
    context = MagicMock()
    context.bot.id = BOT_ID
    context.bot.username = BOT_USERNAME
    context.bot.send_chat_action = AsyncMock()
    context.bot_data = {
        "responder": responder or MagicMock(respond=AsyncMock(return_value="reply")),
        "chat_memory": ChatMemory(),
        "history": history or HistoryStore(compactor=MagicMock(), config=MemoryConfig()),
    }
    return context


# ---------------------------------------------------------------------------
# handle_message
# ---------------------------------------------------------------------------


async def test_private_message_gets_reply() -> None:
    update = _make_update("Коли вступ?")
    context = _make_context()

    with patch("admission_bot.bot.handlers.send_formatted", new_callable=AsyncMock) as mock_send:
        await handle_message(update, context)

    context.bot_data["responder"].respond.assert_awaited_once_with("Коли вступ?", 1, 10)
    mock_send.assert_awaited_once_with(context.bot, 1, "reply", reply_to=55)
    entries = context.bot_data["chat_memory"].entries(1)
    assert [(e.author, e.content) for e in entries] == [("@anna", "Коли вступ?")]


async def test_group_message_without_mention_is_only_recorded() -> None:
    update = _make_update("hello everyone", chat_type=ChatType.GROUP)
    update.effective_user = _make_user(username=None)
    context = _make_context()

    with patch("admission_bot.bot.handlers.send_formatted", new_callable=AsyncMock) as mock_send:
        await handle_message(update, context)

    context.bot_data["responder"].respond.assert_not_awaited()
    mock_send.assert_not_awaited()
    assert context.bot_data["chat_memory"].entries(1)[0].author == "Anna K"


async def test_group_mention_is_stripped() -> None:
    update = _make_update("@Admission_Bot коли дедлайн?", chat_type=ChatType.SUPERGROUP)
    context = _make_context()

    with patch("admission_bot.bot.handlers.send_formatted", new_callable=AsyncMock):
        await handle_message(update, context)

    context.bot_data["responder"].respond.assert_awaited_once_with("коли дедлайн?", 1, 10)


async def test_group_reply_to_bot_gets_reply() -> None:
    update = _make_update("а стипендія?", chat_type=ChatType.GROUP, reply_to_bot=True)
    context = _make_context()

    with patch("admission_bot.bot.handlers.send_formatted", new_callable=AsyncMock) as mock_send:
        await handle_message(update, context)

    mock_send.assert_awaited_once()


async def test_bare_mention_is_ignored() -> None:
    update = _make_update("@admission_bot", chat_type=ChatType.GROUP)
    context = _make_context()

    with patch("admission_bot.bot.handlers.send_formatted", new_callable=AsyncMock) as mock_send:
        await handle_message(update, context)

    mock_send.assert_not_awaited()


def test_should_respond() -> None:
    private = _make_update("x").effective_message
    assert should_respond(private, BOT_USERNAME, BOT_ID)

    group = _make_update("x", chat_type=ChatType.GROUP).effective_message
    assert not should_respond(group, BOT_USERNAME, BOT_ID)

    mentioned = _make_update("hey @ADMISSION_BOT", chat_type=ChatType.GROUP).effective_message
    assert should_respond(mentioned, BOT_USERNAME, BOT_ID)


# ---------------------------------------------------------------------------
# Commands and chat events
# ---------------------------------------------------------------------------


async def test_start_greets() -> None:
    update = _make_update("/start")
    await handle_start(update, _make_context())
    update.message.reply_text.assert_awaited_once_with(GREETING)


async def test_clear_memory_forgets_history() -> None:
    history = HistoryStore(compactor=MagicMock(), config=MemoryConfig())
    await history.append(1, 10, "user", "q")
    await history.append(1, 11, "user", "other user")
    update = _make_update("/clear_memory")

    await handle_clear_memory(update, _make_context(history=history))

    assert history.get(1, 10) == []
    assert len(history.get(1, 11)) == 1
    update.message.reply_text.assert_awaited_once_with(MEMORY_CLEARED)


async def test_new_members_welcomed() -> None:
    update = _make_update()
    update.effective_message.new_chat_members = [_make_user(user_id=5)]

    await handle_new_members(update, _make_context())

    update.effective_message.reply_text.assert_awaited_once_with(WELCOME)


async def test_bot_joining_is_not_welcomed() -> None:
    update = _make_update()
    update.effective_message.new_chat_members = [_make_user(user_id=BOT_ID)]

    await handle_new_members(update, _make_context())

    update.effective_message.reply_text.assert_not_awaited()


async def test_error_handler_logs(caplog) -> None:
    context = _make_context()
    context.error = RuntimeError("boom")

    await handle_error(object(), context)

    assert "Unhandled error for chat=unknown" in caplog.text


# ---------------------------------------------------------------------------
# Application wiring
# ---------------------------------------------------------------------------


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setattr("admission_bot.config.settings.telegram_bot_token", "123456:TEST-TOKEN")
    return create_app()


def test_create_app_registers_services(app) -> None:
    assert isinstance(app.bot_data["responder"], Responder)
    assert isinstance(app.bot_data["history"], HistoryStore)
    assert isinstance(app.bot_data["chat_memory"], ChatMemory)
    assert app.bot_data["history"].config.history_max_entries == 25


def test_create_app_registers_handlers(app) -> None:
    assert len(app.handlers[0]) == 4
    assert handle_error in app.error_handlers
