from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

ANALYSIS_FALLBACK = "Analysis failed. Unable to provide recommendation due to technical error."
MISSING_HOLDERS = "Not enough holder data to produce a verdict."
MISSING_HISTORY = "Not enough price/volume history to produce a verdict."

ANALYST_SYSTEM = """You are an on-chain token analyst inside a Telegram bot.

RULES:
- Answer in 2-3 short lines. No markdown, no HTML.
- Start with exactly one emoji that signals the tone (🟢 bullish, ⚠️ caution, 🛑 bearish, 🚀 strong momentum).
- Base the verdict only on the data provided. Never invent numbers.
- Informational only. Not financial advice.
"""

HOLDERS_PROMPT = """Token Address: {token}

Top {count} Holders Information:
{holders}

Based solely on this token address and holder distribution information, give a direct verdict on whether \
this looks like a healthy token. Consider holder concentration, distribution patterns, and potential red flags."""

PRICE_VOLUME_PROMPT = """Token Address: {token}

Recent Price and Volume History:
{history}

Based solely on this price and volume history, give a direct verdict on the token's recent trend and \
trading activity. Consider price movement, volume spikes, and any notable patterns."""


@dataclass
class LLMClient:
    api_key: str
    model: str = "gpt-4.1-mini"
    max_output_tokens: int = 200
    temperature: float = 0.4
    timeout: float = 30.0

    def __post_init__(self) -> None:
        self.client = AsyncOpenAI(api_key=self.api_key)

    def _extract_output_text(self, resp: Any) -> str:
        output_text = getattr(resp, "output_text", None)
        if isinstance(output_text, str) and output_text.strip():
            return output_text.strip()

        parts: list[str] = []
        for item in (getattr(resp, "output", None) or []):
            if getattr(item, "type", None) != "message":
                continue
            for piece in getattr(item, "content", None) or []:
                piece_text = getattr(piece, "text", None)
                if getattr(piece, "type", None) in ("output_text", "text") and isinstance(piece_text, str):
                    parts.append(piece_text)
        return "\n".join([p for p in parts if p.strip()]).strip()

    async def complete(self, prompt: str) -> str:
        resp = await asyncio.wait_for(
            self.client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": ANALYST_SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            ),
            timeout=self.timeout,
        )
        return self._extract_output_text(resp)

    async def _verdict(self, prompt: str, event: str) -> str:
        try:
            text = await self.complete(prompt)
        except Exception as exc:  # noqa: BLE001
            logger.warning(event, extra={"event": event, "error": repr(exc)})
            return ANALYSIS_FALLBACK
        return text or ANALYSIS_FALLBACK

    async def analyze_holders(self, token: str, holders: list[dict]) -> str:
        """Short AI verdict on a holder distribution. Never raises."""
        if not token or not holders:
            return MISSING_HOLDERS
        lines = [
            f"Holder {i}: {h.get('address') or 'Unknown'}, "
            f"Balance: {h.get('amount', 'Unknown')}, Percentage: {h.get('percentage', 'Unknown')}"
            for i, h in enumerate(holders, start=1)
        ]
        prompt = HOLDERS_PROMPT.format(token=token, count=len(holders), holders="\n".join(lines))
        return await self._verdict(prompt, "llm_holders_failed")

    async def analyze_price_volume(self, token: str, history: list[dict]) -> str:
        """Short AI verdict on a price/volume series. Never raises."""
        if not token or not history:
            return MISSING_HISTORY
        lines = []
        for i, row in enumerate(history, start=1):
            ts = datetime.fromtimestamp(row["time"], tz=timezone.utc).isoformat()
            lines.append(f"Period {i}: Time: {ts}, Close: {row['close']}, VolumeUSD: {row.get('volume_usd', 0)}")
        prompt = PRICE_VOLUME_PROMPT.format(token=token, history="\n".join(lines))
        return await self._verdict(prompt, "llm_price_volume_failed")
