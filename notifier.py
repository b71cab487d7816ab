"""Telegram notification helper.

Uses python-telegram-bot >= 20 (async based).

Two chats are involved:
- TELEGRAM_CHAT_ID       : where stock alerts are sent and later edited
- TELEGRAM_ADMIN_CHAT_ID : operator channel for startup and error reports

If the admin chat is missing, operator reports are only logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import TelegramError

from errors import EditError, SendError

logger = logging.getLogger(__name__)

_NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


@dataclass(frozen=True)
class MessageHandle:
    chat_id: str
    message_id: int


class Messenger(Protocol):
    async def send(self, text: str) -> MessageHandle: ...

    async def edit(self, handle: MessageHandle, text: str) -> None: ...

    async def notify_admin(self, text: str, markdown: bool = False) -> None: ...


class TelegramNotifier:
    def __init__(self, token: str, chat_id: str, admin_chat_id: Optional[str] = None) -> None:
        self.chat_id = chat_id
        self.admin_chat_id = admin_chat_id
        if not self.admin_chat_id:
            logger.warning("TELEGRAM_ADMIN_CHAT_ID not set; operator reports will only be logged.")
        self._bot = Bot(token)

    async def start(self) -> None:
        await self._bot.initialize()

    async def close(self) -> None:
        await self._bot.shutdown()

    async def send(self, text: str) -> MessageHandle:
        try:
            message = await self._bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN,
                link_preview_options=_NO_PREVIEW,
            )
        except TelegramError as e:
            raise SendError(f"Could not send Telegram message: {e}") from e
        logger.info("Sent Telegram alert (message_id=%s)", message.message_id)
        return MessageHandle(chat_id=self.chat_id, message_id=message.message_id)

    async def edit(self, handle: MessageHandle, text: str) -> None:
        try:
            await self._bot.edit_message_text(
                text=text,
                chat_id=handle.chat_id,
                message_id=handle.message_id,
                parse_mode=ParseMode.MARKDOWN,
                link_preview_options=_NO_PREVIEW,
            )
        except TelegramError as e:
            raise EditError(
                f"Could not edit Telegram message {handle.message_id}: {e}",
                message_id=handle.message_id,
            ) from e
        logger.info("Edited Telegram alert (message_id=%s)", handle.message_id)

    async def notify_admin(self, text: str, markdown: bool = False) -> None:
        """Report to the operator chat. Never raises."""
        if not self.admin_chat_id:
            logger.info("Admin report (not sent): %s", text)
            return
        try:
            await self._bot.send_message(
                chat_id=self.admin_chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN if markdown else None,
                link_preview_options=_NO_PREVIEW,
            )
        except TelegramError as e:
            logger.error("Error sending admin message: %s", e)


__all__ = ["MessageHandle", "Messenger", "TelegramNotifier"]
