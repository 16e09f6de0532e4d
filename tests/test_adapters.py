from __future__ import annotations

import httpx
import pytest

from app.adapters.bubblemaps import BubblemapsAdapter
from app.adapters.market_data import MarketDataAdapter
from app.core.errors import UpstreamError
from app.core.http import ResilientHTTPClient


def _client(handler) -> ResilientHTTPClient:
    return ResilientHTTPClient(timeout=5, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_bubblemaps_passes_chain_and_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "availability": True})

    http = _client(handler)
    adapter = BubblemapsAdapter(http, "https://api.example/", "https://app.example")
    out = await adapter.get_availability("bsc", "0xabc")
    await http.close()

    assert out == {"status": "OK", "availability": True}
    assert seen[0].url.path == "/map-availability"
    assert seen[0].url.params["chain"] == "bsc"
    assert seen[0].url.params["token"] == "0xabc"
    assert adapter.map_url("bsc", "0xabc") == "https://app.example/bsc/token/0xabc"


@pytest.mark.asyncio
async def test_bubblemaps_non_dict_body_reads_as_ko() -> None:
    http = _client(lambda request: httpx.Response(200, json=["unexpected"]))
    out = await BubblemapsAdapter(http, "https://api.example", "https://app.example").get_map_data("eth", "0xabc")
    await http.close()

    assert out["status"] == "KO"


@pytest.mark.asyncio
async def test_http_errors_raise_upstream_error_without_retry() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(503, text="busy")

    http = _client(handler)
    with pytest.raises(UpstreamError):
        await http.get_json("https://api.example/map-data")
    await http.close()

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_malformed_json_raises_upstream_error() -> None:
    http = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(UpstreamError):
        await http.get_json("https://api.example/map-data")
    await http.close()


@pytest.mark.asyncio
async def test_market_overview_is_normalized() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"name": "Wrapped SOL", "symbol": "SOL", "price": "150.5", "mc": 1e9, "holder": 1200},
            },
        )

    http = _client(handler)
    adapter = MarketDataAdapter(http, "https://market.example", "secret", chain="solana")
    out = await adapter.get_token_overview("So11111111111111111111111111111111111111112")
    await http.close()

    assert out["ok"] is True
    assert out["data"]["price"] == 150.5
    assert out["data"]["market_cap"] == 1e9
    assert out["data"]["liquidity"] is None
    assert seen[0].headers["X-API-KEY"] == "secret"
    assert seen[0].headers["x-chain"] == "solana"


@pytest.mark.asyncio
async def test_market_unsuccessful_body_is_not_ok() -> None:
    http = _client(lambda request: httpx.Response(200, json={"success": False, "message": "Not found"}))
    out = await MarketDataAdapter(http, "https://market.example", "k").get_token_overview("addr")
    await http.close()

    assert out == {"ok": False, "data": None, "message": "Not found"}


@pytest.mark.asyncio
async def test_price_history_rows_are_normalized() -> None:
    body = {
        "success": True,
        "data": {
            "items": [
                {"unixTime": 1_714_550_400, "c": 1.5, "v_usd": 900.0},
                {"unixTime": 1_714_554_000, "c": 1.6},
                {"unixTime": None, "c": 1.7},
            ]
        },
    }
    http = _client(lambda request: httpx.Response(200, json=body))
    out = await MarketDataAdapter(http, "https://market.example", "k").get_price_history("addr", hours=2)
    await http.close()

    assert out["ok"] is True
    assert out["data"] == [
        {"time": 1_714_550_400, "close": 1.5, "volume_usd": 900.0},
        {"time": 1_714_554_000, "close": 1.6, "volume_usd": 0.0},
    ]


@pytest.mark.asyncio
async def test_wallet_tokens_sorted_by_value() -> None:
    body = {
        "success": True,
        "data": {
            "items": [
                {"address": "a", "symbol": "AAA", "uiAmount": 1, "priceUsd": 1, "valueUsd": 1},
                {"address": "b", "symbol": "BBB", "uiAmount": 2, "priceUsd": 50, "valueUsd": 100},
            ]
        },
    }
    http = _client(lambda request: httpx.Response(200, json=body))
    out = await MarketDataAdapter(http, "https://market.example", "k").get_wallet_tokens("wallet")
    await http.close()

    assert [t["symbol"] for t in out["data"]["tokens"]] == ["BBB", "AAA"]
    assert out["data"]["total_usd"] == 101.0


@pytest.mark.asyncio
async def test_empty_wallet_is_not_ok() -> None:
    http = _client(lambda request: httpx.Response(200, json={"success": True, "data": {"items": []}}))
    out = await MarketDataAdapter(http, "https://market.example", "k").get_wallet_tokens("wallet")
    await http.close()

    assert out["ok"] is False
    assert "No token balances" in out["message"]
