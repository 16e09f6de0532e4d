from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

from app.bot.handlers import init_handlers, router
from app.core.config import Settings, get_settings
from app.core.container import ServiceHub, build_hub
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)


def _build(settings: Settings) -> tuple[Bot, Dispatcher, ServiceHub]:
    bot = Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML, link_preview_is_disabled=True),
    )
    hub = build_hub(settings, bot)
    init_handlers(hub)
    dp = Dispatcher()
    dp.include_router(router)
    dp.shutdown.register(hub.close)
    return bot, dp, hub


async def _health(_: web.Request) -> web.Response:
    return web.Response(text="🚀 token-insight-bot")


def run_webhook(settings: Settings) -> None:
    bot, dp, _ = _build(settings)
    webhook_url = settings.webhook_base_url.rstrip("/") + settings.webhook_path

    async def on_startup(bot: Bot) -> None:
        await bot.set_webhook(webhook_url, secret_token=settings.webhook_secret or None, drop_pending_updates=True)
        logger.info("webhook_set", extra={"event": "webhook_set"})

    dp.startup.register(on_startup)

    app = web.Application()
    app.router.add_get("/", _health)
    SimpleRequestHandler(dispatcher=dp, bot=bot, secret_token=settings.webhook_secret or None).register(
        app, path=settings.webhook_path
    )
    setup_application(app, dp, bot=bot)
    logger.info("bot_starting", extra={"event": "bot_starting_webhook"})
    web.run_app(app, host=settings.host, port=settings.port)


async def run_polling(settings: Settings) -> None:
    bot, dp, _ = _build(settings)
    await bot.delete_webhook(drop_pending_updates=False)
    logger.info("bot_starting", extra={"event": "bot_starting_polling"})
    await dp.start_polling(bot)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    if settings.webhook_base_url:
        run_webhook(settings)
    else:
        asyncio.run(run_polling(settings))


if __name__ == "__main__":
    main()
