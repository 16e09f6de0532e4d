from __future__ import annotations

import time
from typing import Any

from app.core.http import ResilientHTTPClient


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first(row: dict, *keys: str) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


class MarketDataAdapter:
    """Birdeye-compatible market data API (token overview, price history, wallets).

    Every method returns ``{"ok": bool, "data": ..., "message": str}``.
    ``ok=False`` is the service saying "nothing here"; transport problems
    raise UpstreamError instead.
    """

    def __init__(self, http: ResilientHTTPClient, base_url: str, api_key: str, chain: str = "solana") -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-API-KEY": api_key, "x-chain": chain, "accept": "application/json"}

    async def _get(self, path: str, params: dict[str, Any]) -> dict:
        body = await self.http.get_json(f"{self.base_url}{path}", params=params, headers=self.headers)
        if not isinstance(body, dict):
            return {"ok": False, "data": None, "message": "Unexpected response shape"}
        data = body.get("data")
        if body.get("success") is False or data in (None, {}, []):
            return {"ok": False, "data": None, "message": str(body.get("message") or "No data returned")}
        return {"ok": True, "data": data, "message": ""}

    async def get_token_overview(self, address: str) -> dict:
        resp = await self._get("/defi/token_overview", {"address": address})
        if not resp["ok"]:
            return resp
        raw = resp["data"]
        resp["data"] = {
            "address": address,
            "name": raw.get("name"),
            "symbol": raw.get("symbol"),
            "price": _as_float(raw.get("price")),
            "price_change_24h": _as_float(raw.get("priceChange24hPercent")),
            "market_cap": _as_float(_first(raw, "marketCap", "mc")),
            "fdv": _as_float(raw.get("fdv")),
            "liquidity": _as_float(raw.get("liquidity")),
            "volume_24h": _as_float(_first(raw, "v24hUSD", "volume24hUSD")),
            "holders": _as_float(raw.get("holder")),
            "supply": _as_float(_first(raw, "circulatingSupply", "supply")),
            "last_trade": _first(raw, "lastTradeUnixTime", "lastTradeHumanTime"),
        }
        return resp

    async def get_price_history(self, address: str, hours: int = 48, interval: str = "1H") -> dict:
        now = int(time.time())
        resp = await self._get(
            "/defi/ohlcv",
            {
                "address": address,
                "type": interval,
                "time_from": now - hours * 3600,
                "time_to": now,
            },
        )
        if not resp["ok"]:
            return resp
        items = resp["data"].get("items") if isinstance(resp["data"], dict) else resp["data"]
        history = []
        for row in items or []:
            ts = _as_float(_first(row, "unixTime", "time"))
            close = _as_float(_first(row, "c", "close", "value"))
            if ts is None or close is None:
                continue
            history.append(
                {
                    "time": int(ts),
                    "close": close,
                    "volume_usd": _as_float(_first(row, "volumeUsd", "v_usd", "v")) or 0.0,
                }
            )
        if not history:
            return {"ok": False, "data": None, "message": "No price history for this token"}
        resp["data"] = history
        return resp

    async def get_wallet_tokens(self, wallet: str) -> dict:
        resp = await self._get("/v1/wallet/token_list", {"wallet": wallet})
        if not resp["ok"]:
            return resp
        raw = resp["data"]
        tokens = []
        for row in raw.get("items") or []:
            tokens.append(
                {
                    "address": row.get("address"),
                    "symbol": row.get("symbol") or (str(row.get("address") or "")[:6] + "..."),
                    "name": row.get("name"),
                    "amount": _as_float(row.get("uiAmount")),
                    "price_usd": _as_float(row.get("priceUsd")),
                    "value_usd": _as_float(row.get("valueUsd")),
                }
            )
        tokens.sort(key=lambda t: t["value_usd"] or 0.0, reverse=True)
        if not tokens:
            return {"ok": False, "data": None, "message": "No token balances found for this wallet"}
        total = _as_float(raw.get("totalUsd"))
        if total is None:
            total = sum(t["value_usd"] or 0.0 for t in tokens)
        resp["data"] = {"wallet": wallet, "total_usd": total, "tokens": tokens}
        return resp

    async def get_wallet_pnl(self, wallet: str) -> dict:
        resp = await self._get("/wallet/v2/pnl/summary", {"wallet": wallet})
        if not resp["ok"]:
            return resp
        raw = resp["data"]
        summary = raw.get("summary") or raw
        pnl = summary.get("pnl") or {}
        counts = summary.get("counts") or {}
        tokens = []
        for row in raw.get("tokens") or []:
            row_pnl = row.get("pnl") or row
            tokens.append(
                {
                    "symbol": row.get("symbol") or (str(row.get("address") or "")[:6] + "..."),
                    "realized_usd": _as_float(_first(row_pnl, "realized_profit_usd", "realized")),
                    "unrealized_usd": _as_float(_first(row_pnl, "unrealized_usd", "unrealized")),
                    "total_usd": _as_float(_first(row_pnl, "total_usd", "total")),
                    "roi_pct": _as_float(_first(row_pnl, "realized_profit_percent", "roi")),
                }
            )
        tokens.sort(key=lambda t: abs(t["total_usd"] or 0.0), reverse=True)
        resp["data"] = {
            "wallet": wallet,
            "realized_usd": _as_float(_first(pnl, "realized_profit_usd", "realized")),
            "unrealized_usd": _as_float(_first(pnl, "unrealized_usd", "unrealized")),
            "total_usd": _as_float(_first(pnl, "total_usd", "total")),
            "total_invested_usd": _as_float(_first(summary.get("cashflow_usd") or {}, "total_invested")),
            "win_rate": _as_float(counts.get("win_rate")),
            "total_trades": _as_float(_first(counts, "total_trade", "total_trades")),
            "tokens": tokens,
        }
        return resp
