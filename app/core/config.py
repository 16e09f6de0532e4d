from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_CHAINS = ("eth", "bsc", "ftm", "avax", "cro", "arbi", "poly", "base", "sol", "sonic")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Telegram
    telegram_bot_token: str
    webhook_base_url: str = ""  # empty -> long polling
    webhook_path: str = "/telegram/webhook"
    webhook_secret: str = ""
    host: str = "0.0.0.0"
    port: int = 3000

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4.1-mini"
    llm_timeout_sec: float = 30.0

    # Market data (Birdeye-compatible)
    market_data_api_key: str
    market_data_base_url: str = "https://public-api.birdeye.so"
    market_data_chain: str = "solana"

    # Bubblemaps
    bubblemaps_api_url: str = "https://api-legacy.bubblemaps.io"
    bubblemaps_app_url: str = "https://app.bubblemaps.io"

    # Pipeline tuning
    http_timeout_sec: float = 20.0
    screenshot_timeout_sec: float = 60.0
    progress_interval_sec: float = 0.8
    message_limit: int = 4096
    max_list_display: int = 10
    price_history_hours: int = 48

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
