"""Tests for the Telegram adapter (Bot mocked)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import BadRequest, NetworkError

from errors import EditError, SendError
from notifier import MessageHandle, TelegramNotifier


@pytest.fixture
def bot():
    with patch("notifier.Bot") as cls:
        instance = MagicMock()
        instance.send_message = AsyncMock(return_value=MagicMock(message_id=42))
        instance.edit_message_text = AsyncMock()
        cls.return_value = instance
        yield instance


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_returns_handle(self, bot):
        notifier = TelegramNotifier("token", "chat", "admin")
        handle = await notifier.send("hello")
        assert handle == MessageHandle(chat_id="chat", message_id=42)
        assert bot.send_message.call_args.kwargs["chat_id"] == "chat"

    @pytest.mark.asyncio
    async def test_send_error(self, bot):
        bot.send_message.side_effect = NetworkError("down")
        notifier = TelegramNotifier("token", "chat")
        with pytest.raises(SendError):
            await notifier.send("hello")

    @pytest.mark.asyncio
    async def test_edit(self, bot):
        notifier = TelegramNotifier("token", "chat")
        await notifier.edit(MessageHandle("chat", 7), "new text")
        kwargs = bot.edit_message_text.call_args.kwargs
        assert kwargs["message_id"] == 7
        assert kwargs["text"] == "new text"

    @pytest.mark.asyncio
    async def test_edit_error(self, bot):
        bot.edit_message_text.side_effect = BadRequest("Message can't be edited")
        notifier = TelegramNotifier("token", "chat")
        with pytest.raises(EditError) as exc:
            await notifier.edit(MessageHandle("chat", 7), "new text")
        assert exc.value.message_id == 7

    @pytest.mark.asyncio
    async def test_admin_goes_to_admin_chat(self, bot):
        notifier = TelegramNotifier("token", "chat", "admin")
        await notifier.notify_admin("started", markdown=True)
        assert bot.send_message.call_args.kwargs["chat_id"] == "admin"

    @pytest.mark.asyncio
    async def test_admin_never_raises(self, bot):
        bot.send_message.side_effect = NetworkError("down")
        notifier = TelegramNotifier("token", "chat", "admin")
        await notifier.notify_admin("boom")

    @pytest.mark.asyncio
    async def test_admin_without_chat_is_logged_only(self, bot):
        notifier = TelegramNotifier("token", "chat")
        await notifier.notify_admin("boom")
        bot.send_message.assert_not_called()
