from __future__ import annotations

import pytest

from app.adapters.llm import ANALYSIS_FALLBACK
from app.core.errors import RenderError, UpstreamError
from app.services.orchestrator import AI_HOLDERS_SAMPLE, MapReport, PriceChartReport
from app.services.outcome import HardFailure, SoftFailure, Success

TOKEN = "0x603c7f932ed1fc6575303d8fb018fdcbb0f39a95"
SOL_TOKEN = "So11111111111111111111111111111111111111112"
WALLET = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


@pytest.mark.asyncio
async def test_token_map_calls_in_dependency_order(orchestrator, bubblemaps, llm, screenshots) -> None:
    out = await orchestrator.token_map("bsc", TOKEN)

    assert isinstance(out, Success)
    assert bubblemaps.calls == ["availability", "map_data", "metadata"]
    assert llm.calls == ["holders"]
    assert screenshots.calls == [f"https://app.bubblemaps.io/bsc/token/{TOKEN}"]
    report = out.payload
    assert isinstance(report, MapReport)
    assert report.verdict == llm.reply
    assert report.screenshot == b"\x89PNG-screenshot"
    assert report.metadata["decentralisation_score"] == 72.5


@pytest.mark.asyncio
async def test_status_ko_stops_after_availability(orchestrator, bubblemaps, llm, screenshots) -> None:
    bubblemaps.availability = {"status": "KO", "message": "Unsupported token"}

    out = await orchestrator.token_map("bsc", TOKEN)

    assert isinstance(out, HardFailure)
    assert out.kind == "unavailable"
    assert "Unsupported token" in out.reason
    assert bubblemaps.calls == ["availability"]
    assert llm.calls == []
    assert screenshots.calls == []


@pytest.mark.asyncio
async def test_map_not_available_is_hard_failure(orchestrator, bubblemaps, llm) -> None:
    bubblemaps.availability = {"status": "OK", "availability": False}

    out = await orchestrator.token_map("eth", TOKEN)

    assert out == HardFailure(reason="Map not available for this token.", kind="unavailable")
    assert bubblemaps.calls == ["availability"]
    assert llm.calls == []


@pytest.mark.asyncio
async def test_transport_error_is_hard_failure(orchestrator, bubblemaps, llm, screenshots) -> None:
    bubblemaps.errors["map_data"] = UpstreamError("map-data returned 502")

    out = await orchestrator.token_map("bsc", TOKEN)

    assert isinstance(out, HardFailure)
    assert out.kind == "transport"
    assert bubblemaps.calls == ["availability", "map_data"]
    assert llm.calls == []
    assert screenshots.calls == []


@pytest.mark.asyncio
async def test_map_data_message_is_unavailable(orchestrator, bubblemaps) -> None:
    bubblemaps.map_data = {"message": "Token not found"}

    out = await orchestrator.token_map("bsc", TOKEN)

    assert out == HardFailure(reason="Token not found", kind="unavailable")
    assert bubblemaps.calls == ["availability", "map_data"]


@pytest.mark.asyncio
async def test_screenshot_failure_degrades_softly(orchestrator, screenshots, llm) -> None:
    screenshots.error = RenderError("chromium crashed")

    out = await orchestrator.token_map("bsc", TOKEN)

    assert isinstance(out, SoftFailure)
    assert "screenshot" in out.reason
    assert out.payload.screenshot is None
    assert out.payload.verdict == llm.reply
    assert len(out.payload.map_data["nodes"]) == 12


@pytest.mark.asyncio
async def test_llm_failure_falls_back_to_canned_verdict(orchestrator, llm) -> None:
    llm.error = TimeoutError()

    out = await orchestrator.token_map("bsc", TOKEN)

    assert isinstance(out, Success)
    assert out.payload.verdict == ANALYSIS_FALLBACK


@pytest.mark.asyncio
async def test_llm_sees_only_top_holders(orchestrator, bubblemaps) -> None:
    seen: list[list[dict]] = []

    class RecordingLLM:
        async def analyze_holders(self, token: str, holders: list[dict]) -> str:
            seen.append(holders)
            return "ok"

    orchestrator.llm = RecordingLLM()
    await orchestrator.token_map("bsc", TOKEN)

    assert len(seen[0]) == AI_HOLDERS_SAMPLE
    assert seen[0] == bubblemaps.map_data["nodes"][:AI_HOLDERS_SAMPLE]


@pytest.mark.asyncio
async def test_score_reads_metadata_then_map(orchestrator, bubblemaps, screenshots) -> None:
    out = await orchestrator.token_score("bsc", TOKEN)

    assert isinstance(out, Success)
    assert bubblemaps.calls == ["metadata", "map_data"]
    assert screenshots.calls == []


@pytest.mark.asyncio
async def test_holders_only_needs_map_data(orchestrator, bubblemaps) -> None:
    out = await orchestrator.token_holders("bsc", TOKEN)

    assert isinstance(out, Success)
    assert bubblemaps.calls == ["map_data"]
    assert out.payload.metadata is None


@pytest.mark.asyncio
async def test_screenshot_command_degrades_without_image(orchestrator, screenshots, llm) -> None:
    screenshots.error = RenderError("timeout")

    out = await orchestrator.map_screenshot("bsc", TOKEN)

    assert isinstance(out, SoftFailure)
    assert out.payload.screenshot is None
    assert llm.calls == []


@pytest.mark.asyncio
async def test_token_detail_unavailable(orchestrator, market) -> None:
    market.overview = {"ok": False, "data": None, "message": "Token not found"}

    out = await orchestrator.token_detail(SOL_TOKEN)

    assert out == HardFailure(reason="Token not found", kind="unavailable")


@pytest.mark.asyncio
async def test_price_chart_runs_overview_then_history(orchestrator, market, charts, llm) -> None:
    out = await orchestrator.price_chart(SOL_TOKEN)

    assert isinstance(out, Success)
    assert market.calls == ["token_overview", "price_history"]
    assert charts.calls == ["line"]
    assert llm.calls == ["price_volume"]
    assert isinstance(out.payload, PriceChartReport)
    assert out.payload.chart == b"\x89PNG-chart"


@pytest.mark.asyncio
async def test_price_chart_missing_history_skips_render_and_ai(orchestrator, market, charts, llm) -> None:
    market.history = {"ok": False, "data": None, "message": "No price history for this token"}

    out = await orchestrator.price_chart(SOL_TOKEN)

    assert out == HardFailure(reason="No price history for this token", kind="unavailable")
    assert charts.calls == []
    assert llm.calls == []


@pytest.mark.asyncio
async def test_price_chart_render_failure_keeps_verdict(orchestrator, charts, llm) -> None:
    charts.error = RenderError("no display")

    out = await orchestrator.price_chart(SOL_TOKEN)

    assert isinstance(out, SoftFailure)
    assert out.payload.chart is None
    assert out.payload.verdict == llm.reply


@pytest.mark.asyncio
async def test_wallet_balances_pie_failure_is_soft(orchestrator, charts) -> None:
    charts.error = RenderError("no priced balances")

    out = await orchestrator.wallet_balances(WALLET)

    assert isinstance(out, SoftFailure)
    assert len(out.payload.tokens) == 12
    assert out.payload.total_usd == 1200.0


@pytest.mark.asyncio
async def test_wallet_pnl_transport_error(orchestrator, market) -> None:
    market.errors["wallet_pnl"] = UpstreamError("pnl returned 500")

    out = await orchestrator.wallet_pnl(WALLET)

    assert isinstance(out, HardFailure)
    assert out.kind == "transport"
