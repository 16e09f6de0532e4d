from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from aiogram.types import InlineKeyboardMarkup

from app.bot.progress import ProgressIndicator
from app.bot.templates import failure_text
from app.bot.transport import Transport
from app.core.chunker import TELEGRAM_MESSAGE_LIMIT, chunk_message
from app.core.errors import DeliveryError
from app.services.outcome import HardFailure, Outcome

logger = logging.getLogger(__name__)

CAPTION_LIMIT = 1024


@dataclass(frozen=True)
class TextItem:
    text: str
    reply_markup: InlineKeyboardMarkup | None = None


@dataclass(frozen=True)
class PhotoItem:
    image: bytes
    caption: str | None = None
    filename: str = "image.png"


OutputItem = Union[TextItem, PhotoItem]
Renderer = Callable[[Any], list[OutputItem]]


def assemble(outcome: Outcome, render: Renderer, subject: str) -> list[OutputItem]:
    """Success/SoftFailure go through ``render``; HardFailure becomes one error notice."""
    if isinstance(outcome, HardFailure):
        return [TextItem(failure_text(outcome, subject))]
    return render(outcome.payload)


async def send_large_message(
    transport: Transport,
    chat_id: int,
    text: str,
    limit: int = TELEGRAM_MESSAGE_LIMIT,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> list[int]:
    """Send ``text`` as continuation-marked chunks; the keyboard rides on the last one."""
    chunks = chunk_message(text, limit)
    sent: list[int] = []
    for i, chunk in enumerate(chunks):
        markup = reply_markup if i == len(chunks) - 1 else None
        sent.append(await transport.send_message(chat_id, chunk, reply_markup=markup))
    return sent


async def _send_photo(transport: Transport, chat_id: int, item: PhotoItem, limit: int) -> None:
    caption = item.caption if item.caption and len(item.caption) <= CAPTION_LIMIT else None
    try:
        await transport.send_photo(chat_id, item.image, caption=caption, filename=item.filename)
    except DeliveryError as exc:
        # the image is optional; fall back to its caption as plain text
        logger.warning("photo_send_failed", extra={"event": "photo_send_failed", "chat_id": chat_id, "error": str(exc)})
        caption = None
    if item.caption and caption is None:
        await send_large_message(transport, chat_id, item.caption, limit)


async def deliver(
    transport: Transport,
    chat_id: int,
    progress: ProgressIndicator,
    items: list[OutputItem],
    limit: int = TELEGRAM_MESSAGE_LIMIT,
) -> None:
    """Replace the progress placeholder with the final output.

    A single short text item is edited into the placeholder. Anything else
    (photos, multi-chunk text) deletes the placeholder and is sent fresh.
    """
    await progress.stop()

    if len(items) == 1 and isinstance(items[0], TextItem) and len(items[0].text) <= limit:
        only = items[0]
        try:
            await transport.edit_message(chat_id, progress.message_id, only.text, reply_markup=only.reply_markup)
            return
        except DeliveryError as exc:
            logger.warning("final_edit_failed", extra={"event": "final_edit_failed", "chat_id": chat_id, "error": str(exc)})

    try:
        await transport.delete_message(chat_id, progress.message_id)
    except DeliveryError as exc:
        logger.debug("placeholder_delete_failed", extra={"event": "placeholder_delete_failed", "error": str(exc)})

    for item in items:
        if isinstance(item, PhotoItem):
            await _send_photo(transport, chat_id, item, limit)
        else:
            await send_large_message(transport, chat_id, item.text, limit, reply_markup=item.reply_markup)
