from __future__ import annotations

from dataclasses import dataclass

from aiogram import Bot

from app.adapters.bubblemaps import BubblemapsAdapter
from app.adapters.llm import LLMClient
from app.adapters.market_data import MarketDataAdapter
from app.adapters.screenshot import ScreenshotRenderer
from app.bot.transport import AiogramTransport, Transport
from app.core.config import Settings
from app.core.http import ResilientHTTPClient
from app.services.charts import ChartService
from app.services.orchestrator import Orchestrator


@dataclass
class ServiceHub:
    settings: Settings
    transport: Transport
    orchestrator: Orchestrator
    http: ResilientHTTPClient | None = None

    async def close(self) -> None:
        if self.http is not None:
            await self.http.close()


def build_hub(settings: Settings, bot: Bot) -> ServiceHub:
    http = ResilientHTTPClient(timeout=settings.http_timeout_sec)
    orchestrator = Orchestrator(
        bubblemaps=BubblemapsAdapter(http, settings.bubblemaps_api_url, settings.bubblemaps_app_url),
        market=MarketDataAdapter(
            http, settings.market_data_base_url, settings.market_data_api_key, chain=settings.market_data_chain
        ),
        llm=LLMClient(api_key=settings.openai_api_key, model=settings.openai_model, timeout=settings.llm_timeout_sec),
        screenshots=ScreenshotRenderer(timeout=settings.screenshot_timeout_sec),
        charts=ChartService(max_slices=settings.max_list_display),
        history_hours=settings.price_history_hours,
    )
    return ServiceHub(settings=settings, transport=AiogramTransport(bot), orchestrator=orchestrator, http=http)
