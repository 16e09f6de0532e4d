from __future__ import annotations

import pytest

from app.bot.commands import CommandRouter
from app.bot.handlers import COMMANDS
from app.core.config import Settings
from app.core.container import ServiceHub
from app.core.errors import DeliveryError, RenderError
from app.services.orchestrator import Orchestrator

WALLET = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


class FakeTransport:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_edits = False
        self.fail_photos = False
        self._next_id = 100

    async def send_message(self, chat_id: int, text: str, reply_markup=None) -> int:
        self._next_id += 1
        self.calls.append(("send", self._next_id, text))
        return self._next_id

    async def edit_message(self, chat_id: int, message_id: int, text: str, reply_markup=None) -> None:
        if self.fail_edits:
            raise DeliveryError("message to edit not found")
        self.calls.append(("edit", message_id, text))

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        self.calls.append(("delete", message_id, None))

    async def send_photo(self, chat_id: int, image: bytes, caption=None, filename="image.png", reply_markup=None) -> int:
        if self.fail_photos:
            raise DeliveryError("photo rejected")
        self._next_id += 1
        self.calls.append(("photo", self._next_id, caption))
        return self._next_id

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def texts(self, op: str) -> list[str]:
        return [call[2] for call in self.calls if call[0] == op]


def make_nodes(count: int) -> list[dict]:
    return [
        {
            "address": f"0x{i:040x}",
            "amount": 1_000_000 - i * 1000,
            "is_contract": i % 3 == 0,
            "percentage": 10.0 - i * 0.5,
            "transaction_count": 10 + i,
            "transfer_count": 5 + i,
        }
        for i in range(count)
    ]


class DummyBubblemaps:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.availability = {"status": "OK", "availability": True}
        self.metadata = {
            "status": "OK",
            "decentralisation_score": 72.5,
            "identified_supply": {"percent_in_cexs": 12.5, "percent_in_contracts": 30.0},
            "dt_update": "2024-05-01T10:00:00Z",
        }
        self.map_data = {
            "full_name": "Test Token",
            "symbol": "TT",
            "dt_update": "2024-05-01T10:00:00Z",
            "nodes": make_nodes(12),
        }

    def _answer(self, name: str, value: dict) -> dict:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        return value

    async def get_availability(self, chain: str, token: str) -> dict:
        return self._answer("availability", self.availability)

    async def get_metadata(self, chain: str, token: str) -> dict:
        return self._answer("metadata", self.metadata)

    async def get_map_data(self, chain: str, token: str) -> dict:
        return self._answer("map_data", self.map_data)

    def map_url(self, chain: str, token: str) -> str:
        return f"https://app.bubblemaps.io/{chain}/token/{token}"


class DummyMarket:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.overview = {
            "ok": True,
            "message": "",
            "data": {"name": "Wrapped SOL", "symbol": "SOL", "price": 150.25, "market_cap": 70_000_000_000},
        }
        self.history = {
            "ok": True,
            "message": "",
            "data": [{"time": 1_714_550_400 + i * 3600, "close": 100.0 + i, "volume_usd": 5000.0} for i in range(24)],
        }
        self.wallet_tokens = {
            "ok": True,
            "message": "",
            "data": {
                "wallet": WALLET,
                "total_usd": 1200.0,
                "tokens": [
                    {"symbol": f"T{i}", "name": None, "amount": 10.0, "price_usd": 10.0, "value_usd": 100.0}
                    for i in range(12)
                ],
            },
        }
        self.pnl = {
            "ok": True,
            "message": "",
            "data": {
                "wallet": WALLET,
                "realized_usd": 1500.0,
                "unrealized_usd": -200.0,
                "total_usd": 1300.0,
                "total_invested_usd": 10_000.0,
                "win_rate": 0.55,
                "total_trades": 40,
                "tokens": [],
            },
        }

    def _answer(self, name: str, value: dict) -> dict:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        return value

    async def get_token_overview(self, address: str) -> dict:
        return self._answer("token_overview", self.overview)

    async def get_price_history(self, address: str, hours: int = 48) -> dict:
        return self._answer("price_history", self.history)

    async def get_wallet_tokens(self, wallet: str) -> dict:
        return self._answer("wallet_tokens", self.wallet_tokens)

    async def get_wallet_pnl(self, wallet: str) -> dict:
        return self._answer("wallet_pnl", self.pnl)


class DummyLLM:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.error: Exception | None = None
        self.reply = "🟢 Healthy distribution, no single wallet dominates."

    async def _answer(self, name: str) -> str:
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return self.reply

    async def analyze_holders(self, token: str, holders: list[dict]) -> str:
        return await self._answer("holders")

    async def analyze_price_volume(self, token: str, history: list[dict]) -> str:
        return await self._answer("price_volume")


class DummyScreenshots:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def render(self, url: str) -> bytes:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return b"\x89PNG-screenshot"


class DummyCharts:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def _answer(self, name: str) -> bytes:
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return b"\x89PNG-chart"

    async def line_chart(self, history: list[dict], title: str) -> bytes:
        return await self._answer("line")

    async def pie_chart(self, tokens: list[dict]) -> bytes:
        return await self._answer("pie")


def make_settings(**overrides) -> Settings:
    values = {
        "telegram_bot_token": "123:test",
        "openai_api_key": "sk-test",
        "market_data_api_key": "test",
        "progress_interval_sec": 0.01,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def bubblemaps() -> DummyBubblemaps:
    return DummyBubblemaps()


@pytest.fixture
def market() -> DummyMarket:
    return DummyMarket()


@pytest.fixture
def llm() -> DummyLLM:
    return DummyLLM()


@pytest.fixture
def screenshots() -> DummyScreenshots:
    return DummyScreenshots()


@pytest.fixture
def charts() -> DummyCharts:
    return DummyCharts()


@pytest.fixture
def orchestrator(bubblemaps, market, llm, screenshots, charts) -> Orchestrator:
    return Orchestrator(bubblemaps=bubblemaps, market=market, llm=llm, screenshots=screenshots, charts=charts)


@pytest.fixture
def hub(transport, orchestrator) -> ServiceHub:
    return ServiceHub(settings=make_settings(), transport=transport, orchestrator=orchestrator)


@pytest.fixture
def command_router(hub) -> CommandRouter:
    return CommandRouter(hub, COMMANDS)


@pytest.fixture
def render_error() -> RenderError:
    return RenderError("chromium crashed")
