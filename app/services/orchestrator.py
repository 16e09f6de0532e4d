"""Remote-call sequencing for every data command.

Each public method runs its required calls strictly in order and stops at the
first hard failure. Optional renders (screenshots, charts) and the AI verdict
run side by side once the required data is in, and both settle before the
result is returned.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable

from app.adapters.llm import ANALYSIS_FALLBACK
from app.core.errors import UpstreamError
from app.services.outcome import HardFailure, Outcome, Success, degrade

logger = logging.getLogger(__name__)

AI_HOLDERS_SAMPLE = 5


@dataclass
class MapReport:
    chain: str
    token: str
    map_url: str
    map_data: dict
    metadata: dict | None = None
    verdict: str | None = None
    screenshot: bytes | None = None


@dataclass
class TokenReport:
    address: str
    overview: dict


@dataclass
class PriceChartReport:
    address: str
    overview: dict
    history: list[dict]
    verdict: str = ANALYSIS_FALLBACK
    chart: bytes | None = None


@dataclass
class WalletBalancesReport:
    wallet: str
    total_usd: float | None
    tokens: list[dict] = field(default_factory=list)
    chart: bytes | None = None


@dataclass
class WalletPnlReport:
    wallet: str
    summary: dict


class StepFailed(Exception):
    """Internal short-circuit carrying the HardFailure of a required step."""

    def __init__(self, outcome: HardFailure) -> None:
        super().__init__(outcome.reason)
        self.outcome = outcome


class Orchestrator:
    def __init__(self, bubblemaps, market, llm, screenshots, charts, history_hours: int = 48) -> None:
        self.bubblemaps = bubblemaps
        self.market = market
        self.llm = llm
        self.screenshots = screenshots
        self.charts = charts
        self.history_hours = history_hours

    # -- step helpers -----------------------------------------------------

    async def _required(self, step: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except UpstreamError as exc:
            logger.warning("required_step_failed", extra={"event": "required_step_failed", "error": f"{step}: {exc}"})
            raise StepFailed(HardFailure(reason=str(exc), kind="transport")) from exc

    @staticmethod
    def _unavailable(step: str, message: str) -> StepFailed:
        logger.info("resource_unavailable", extra={"event": "resource_unavailable", "error": f"{step}: {message}"})
        return StepFailed(HardFailure(reason=message, kind="unavailable"))

    async def _optional(self, step: str, call: Awaitable[bytes]) -> tuple[bytes | None, str | None]:
        try:
            return await call, None
        except Exception as exc:  # noqa: BLE001
            logger.warning("optional_step_failed", extra={"event": "optional_step_failed", "error": f"{step}: {exc!r}"})
            return None, f"{step} unavailable"

    async def _analysis(self, call: Awaitable[str]) -> str:
        try:
            return await call or ANALYSIS_FALLBACK
        except Exception as exc:  # noqa: BLE001
            logger.warning("analysis_failed", extra={"event": "analysis_failed", "error": repr(exc)})
            return ANALYSIS_FALLBACK

    async def _check_availability(self, chain: str, token: str) -> None:
        availability = await self._required("availability", self.bubblemaps.get_availability(chain, token))
        if availability.get("status") != "OK" or not availability.get("availability"):
            detail = availability.get("message") or ""
            raise self._unavailable("availability", f"Map not available for this token. {detail}".strip())

    async def _map_data(self, chain: str, token: str) -> dict:
        data = await self._required("map_data", self.bubblemaps.get_map_data(chain, token))
        if data.get("message") or data.get("status") == "KO":
            raise self._unavailable("map_data", str(data.get("message") or "Failed to fetch map data"))
        return data

    async def _metadata(self, chain: str, token: str) -> dict:
        metadata = await self._required("metadata", self.bubblemaps.get_metadata(chain, token))
        if metadata.get("status") != "OK":
            raise self._unavailable("metadata", str(metadata.get("message") or "Failed to fetch metadata"))
        return metadata

    async def _market(self, step: str, call: Awaitable[dict]) -> Any:
        resp = await self._required(step, call)
        if not resp.get("ok"):
            raise self._unavailable(step, str(resp.get("message") or "No data returned"))
        return resp["data"]

    # -- Bubblemaps flows -------------------------------------------------

    async def token_map(self, chain: str, token: str) -> Outcome:
        try:
            await self._check_availability(chain, token)
            map_data = await self._map_data(chain, token)
            metadata = await self._metadata(chain, token)
        except StepFailed as exc:
            return exc.outcome

        report = MapReport(
            chain=chain,
            token=token,
            map_url=self.bubblemaps.map_url(chain, token),
            map_data=map_data,
            metadata=metadata,
        )
        holders = (map_data.get("nodes") or [])[:AI_HOLDERS_SAMPLE]
        report.verdict, (report.screenshot, shot_error) = await asyncio.gather(
            self._analysis(self.llm.analyze_holders(token, holders)),
            self._optional("screenshot", self.screenshots.render(report.map_url)),
        )
        return degrade(report, [shot_error] if shot_error else [])

    async def token_score(self, chain: str, token: str) -> Outcome:
        try:
            metadata = await self._metadata(chain, token)
            map_data = await self._map_data(chain, token)
        except StepFailed as exc:
            return exc.outcome
        return Success(
            MapReport(
                chain=chain,
                token=token,
                map_url=self.bubblemaps.map_url(chain, token),
                map_data=map_data,
                metadata=metadata,
            )
        )

    async def token_holders(self, chain: str, token: str) -> Outcome:
        try:
            map_data = await self._map_data(chain, token)
        except StepFailed as exc:
            return exc.outcome
        return Success(
            MapReport(chain=chain, token=token, map_url=self.bubblemaps.map_url(chain, token), map_data=map_data)
        )

    async def map_screenshot(self, chain: str, token: str) -> Outcome:
        try:
            await self._check_availability(chain, token)
            map_data = await self._map_data(chain, token)
            metadata = await self._metadata(chain, token)
        except StepFailed as exc:
            return exc.outcome
        report = MapReport(
            chain=chain,
            token=token,
            map_url=self.bubblemaps.map_url(chain, token),
            map_data=map_data,
            metadata=metadata,
        )
        report.screenshot, shot_error = await self._optional("screenshot", self.screenshots.render(report.map_url))
        return degrade(report, [shot_error] if shot_error else [])

    # -- market data flows ------------------------------------------------

    async def token_detail(self, address: str) -> Outcome:
        try:
            overview = await self._market("token_overview", self.market.get_token_overview(address))
        except StepFailed as exc:
            return exc.outcome
        return Success(TokenReport(address=address, overview=overview))

    async def price_chart(self, address: str) -> Outcome:
        try:
            overview = await self._market("token_overview", self.market.get_token_overview(address))
            history = await self._market(
                "price_history", self.market.get_price_history(address, hours=self.history_hours)
            )
        except StepFailed as exc:
            return exc.outcome

        report = PriceChartReport(address=address, overview=overview, history=history)
        title = f"{overview.get('symbol') or address[:6]} price & volume ({self.history_hours}h)"
        (report.chart, chart_error), report.verdict = await asyncio.gather(
            self._optional("chart", self.charts.line_chart(history, title)),
            self._analysis(self.llm.analyze_price_volume(address, history)),
        )
        return degrade(report, [chart_error] if chart_error else [])

    async def wallet_balances(self, wallet: str) -> Outcome:
        try:
            data = await self._market("wallet_tokens", self.market.get_wallet_tokens(wallet))
        except StepFailed as exc:
            return exc.outcome
        report = WalletBalancesReport(wallet=wallet, total_usd=data.get("total_usd"), tokens=data["tokens"])
        report.chart, chart_error = await self._optional("chart", self.charts.pie_chart(report.tokens))
        return degrade(report, [chart_error] if chart_error else [])

    async def wallet_pnl(self, wallet: str) -> Outcome:
        try:
            summary = await self._market("wallet_pnl", self.market.get_wallet_pnl(wallet))
        except StepFailed as exc:
            return exc.outcome
        return Success(WalletPnlReport(wallet=wallet, summary=summary))
