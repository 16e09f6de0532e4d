from __future__ import annotations

from typing import Protocol

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile, InlineKeyboardMarkup

from app.core.errors import DeliveryError


class Transport(Protocol):
    """What the pipeline needs from a chat transport. Message ids come from prior sends."""

    async def send_message(
        self, chat_id: int, text: str, reply_markup: InlineKeyboardMarkup | None = None
    ) -> int: ...

    async def edit_message(
        self, chat_id: int, message_id: int, text: str, reply_markup: InlineKeyboardMarkup | None = None
    ) -> None: ...

    async def delete_message(self, chat_id: int, message_id: int) -> None: ...

    async def send_photo(
        self,
        chat_id: int,
        image: bytes,
        caption: str | None = None,
        filename: str = "image.png",
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> int: ...


class AiogramTransport:
    """Transport backed by an aiogram Bot (parse mode and link previews come from the bot defaults)."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_message(self, chat_id: int, text: str, reply_markup: InlineKeyboardMarkup | None = None) -> int:
        try:
            sent = await self.bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)
        except TelegramAPIError as exc:
            raise DeliveryError(f"send_message failed: {exc}") from exc
        return sent.message_id

    async def edit_message(
        self, chat_id: int, message_id: int, text: str, reply_markup: InlineKeyboardMarkup | None = None
    ) -> None:
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=reply_markup,
            )
        except TelegramAPIError as exc:
            raise DeliveryError(f"edit_message failed: {exc}") from exc

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        try:
            await self.bot.delete_message(chat_id=chat_id, message_id=message_id)
        except TelegramAPIError as exc:
            raise DeliveryError(f"delete_message failed: {exc}") from exc

    async def send_photo(
        self,
        chat_id: int,
        image: bytes,
        caption: str | None = None,
        filename: str = "image.png",
        reply_markup: InlineKeyboardMarkup | None = None,
    ) -> int:
        try:
            sent = await self.bot.send_photo(
                chat_id=chat_id,
                photo=BufferedInputFile(image, filename=filename),
                caption=caption,
                reply_markup=reply_markup,
            )
        except TelegramAPIError as exc:
            raise DeliveryError(f"send_photo failed: {exc}") from exc
        return sent.message_id
