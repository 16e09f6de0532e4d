from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Sequence

from app.bot.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.8

HOURGLASS = ("⏳", "⌛️")
MAGNIFIER = ("🔍", "🔎")
CAMERA = ("📷", "📸")
PEOPLE = ("👥", "👤")
CHART = ("📈", "📉")
WALLET = ("💼", "💰")


class ProgressIndicator:
    """Animated placeholder message for one command invocation.

    The loop only edits its own placeholder (``message_id``) and only reads
    its own stop event, so two commands running in the same chat never touch
    each other's progress.
    """

    def __init__(
        self,
        transport: Transport,
        chat_id: int,
        message_id: int,
        phrase: str,
        frames: Sequence[str] = HOURGLASS,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.transport = transport
        self.chat_id = chat_id
        self.message_id = message_id
        self.phrase = phrase
        self.frames = tuple(frames) or HOURGLASS
        self.interval = interval
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @classmethod
    async def start(
        cls,
        transport: Transport,
        chat_id: int,
        phrase: str,
        frames: Sequence[str] = HOURGLASS,
        interval: float = DEFAULT_INTERVAL,
    ) -> "ProgressIndicator":
        message_id = await transport.send_message(chat_id, phrase)
        indicator = cls(transport, chat_id, message_id, phrase, frames, interval)
        indicator._task = asyncio.create_task(indicator._animate())
        return indicator

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def _animate(self) -> None:
        index = 0
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass
            frame = self.frames[index % len(self.frames)]
            index += 1
            try:
                await self.transport.edit_message(self.chat_id, self.message_id, f"{self.phrase} {frame}")
            except Exception as exc:  # noqa: BLE001
                # placeholder may already be gone; keep animating until told to stop
                logger.debug("progress_edit_failed", extra={"event": "progress_edit_failed", "error": str(exc)})

    async def stop(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task

    async def __aenter__(self) -> "ProgressIndicator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
