from __future__ import annotations

from typing import Iterable

from app.core.fmt import (
    NA,
    fmt_amount,
    fmt_change,
    fmt_compact,
    fmt_pct,
    fmt_ratio,
    fmt_timestamp,
    fmt_usd,
    safe_html,
    shorten,
)
from app.services.outcome import HardFailure

BLOCK = "\n\n"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _score_emoji(score: float | None) -> str:
    if score is None:
        return "⚪"
    if score < 50:
        return "🔴"
    if score < 70:
        return "🟠"
    return "🟢"


def _score(metadata: dict | None) -> float | None:
    value = (metadata or {}).get("decentralisation_score")
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _fmt_score(score: float | None) -> str:
    return NA if score is None else f"{score:g}/100"


def _token_title(map_data: dict) -> str:
    name = safe_html(map_data.get("full_name") or "Unknown token")
    symbol = safe_html(map_data.get("symbol") or "?")
    return f"{name} ({symbol})"


def _remaining_line(remaining: int, noun: str) -> str:
    return f"<i>...and {remaining} more {noun}</i>"


def enumerate_blocks(rows: list, render_row, max_display: int, noun: str) -> list[str]:
    """One block per row for the first ``max_display`` rows, then a single summary line."""
    blocks = [render_row(i, row) for i, row in enumerate(rows[:max_display], start=1)]
    remaining = len(rows) - max_display
    if remaining > 0:
        blocks.append(_remaining_line(remaining, noun))
    return blocks


def _verdict_block(verdict: str | None) -> str | None:
    if not verdict:
        return None
    return f"🤖 <b>AI verdict</b>\n{safe_html(verdict)}"


def _join(blocks: Iterable[str | None]) -> str:
    return BLOCK.join(b for b in blocks if b)


# ---------------------------------------------------------------------------
# Static texts
# ---------------------------------------------------------------------------

def start_text(first_name: str | None) -> str:
    name = safe_html(first_name or "there")
    return (
        f"👋 Hello {name}! Welcome to the Token Insight Bot.\n\n"
        "I read holder maps, prices and wallets so you don't have to.\n"
        "Type /help to see available commands."
    )


def help_text(commands: Iterable) -> str:
    lines = ["<b>Available commands</b>", ""]
    for spec in commands:
        lines.append(f"<code>{safe_html(spec.usage)}</code> - {safe_html(spec.description)}")
    lines += [
        "",
        "<b>Example</b>",
        "<code>/map bsc 0x603c7f932ed1fc6575303d8fb018fdcbb0f39a95</code>",
        "",
        "Available chains: eth, bsc, ftm, avax, cro, arbi, poly, base, sol, sonic",
    ]
    return "\n".join(lines)


def usage_text(spec, problem: str) -> str:
    return (
        f"⚠️ {safe_html(problem)}\n"
        f"Usage: <code>{safe_html(spec.usage)}</code>\n"
        f"Example: <code>{safe_html(spec.example)}</code>"
    )


def unknown_command_text(text: str) -> str:
    keyword = safe_html(text.split()[0] if text.split() else text)
    return f"❓ Unknown command: {keyword}\nType /help for options."


def fallback_text(text: str) -> str:
    return f'🤖 I received: "{safe_html(shorten(text, 200))}". Type /help for options.'


def failure_text(failure: HardFailure, subject: str) -> str:
    if failure.kind == "unavailable":
        return f"❌ {safe_html(failure.reason)}"
    return f"❌ An error occurred while fetching {subject}. Please try again later."


def error_text(subject: str = "your request") -> str:
    return f"❌ Something went wrong while handling {subject}. Please try again later."


# ---------------------------------------------------------------------------
# Bubblemaps
# ---------------------------------------------------------------------------

def holder_block(index: int, holder: dict) -> str:
    label = holder.get("name") or holder.get("address") or "Unknown"
    kind = "Contract" if holder.get("is_contract") else "Wallet"
    return (
        f"{index}. <code>{safe_html(shorten(label, 20))}</code>\n"
        f"   <b>Percentage:</b> {fmt_pct(holder.get('percentage'))}\n"
        f"   <b>Amount:</b> {fmt_amount(holder.get('amount'))}\n"
        f"   <b>Type:</b> {kind}\n"
        f"   <b>Txs:</b> {fmt_amount(holder.get('transaction_count'))} | "
        f"<b>Transfers:</b> {fmt_amount(holder.get('transfer_count'))}"
    )


def _supply_lines(metadata: dict | None) -> str:
    supply = (metadata or {}).get("identified_supply") or {}
    return (
        f"<b>Supply in CEXs:</b> {fmt_pct(supply.get('percent_in_cexs'))}\n"
        f"<b>Supply in Contracts:</b> {fmt_pct(supply.get('percent_in_contracts'))}"
    )


def map_caption(report) -> str:
    score = _score(report.metadata)
    return (
        f"🔵 <b>{_token_title(report.map_data)}</b>\n"
        f"<b>Chain:</b> {safe_html(report.chain.upper())}\n"
        f"<b>Decentralization Score:</b> {_fmt_score(score)}\n"
        f"<b>Token Address:</b> <code>{safe_html(report.token)}</code>"
    )


def map_report_template(report, max_display: int = 10) -> str:
    score = _score(report.metadata)
    updated = (report.metadata or {}).get("dt_update") or report.map_data.get("dt_update")
    header = (
        f"{_score_emoji(score)} <b>{_token_title(report.map_data)}</b>\n\n"
        f"<b>Token Address:</b> <code>{safe_html(report.token)}</code>\n"
        f"<b>Chain:</b> {safe_html(report.chain.upper())}\n"
        f"<b>Decentralization Score:</b> {_fmt_score(score)}\n"
        f"{_supply_lines(report.metadata)}\n"
        f"<b>Last Updated:</b> {fmt_timestamp(updated)}"
    )
    nodes = report.map_data.get("nodes") or []
    holders = enumerate_blocks(nodes, holder_block, max_display, "holders")
    return _join(
        [
            header,
            "👥 <b>Top Holders</b>" if holders else None,
            *holders,
            f"<b>Total Holders Analyzed:</b> {len(nodes)}",
            _verdict_block(report.verdict),
            f"🫧 <a href=\"{safe_html(report.map_url)}\">View the interactive bubble map</a>",
        ]
    )


def score_template(report) -> str:
    score = _score(report.metadata)
    return (
        f"{_score_emoji(score)} <b>Decentralization Score for {_token_title(report.map_data)}</b>\n\n"
        f"<b>Score:</b> {_fmt_score(score)}\n"
        f"{_supply_lines(report.metadata)}\n"
        f"<b>Last Updated:</b> {fmt_timestamp((report.metadata or {}).get('dt_update'))}\n\n"
        f"<b>Token Address:</b> <code>{safe_html(report.token)}</code>\n"
        f"<b>Chain:</b> {safe_html(report.chain.upper())}"
    )


def holders_template(report, max_display: int = 10) -> str:
    nodes = report.map_data.get("nodes") or []
    return _join(
        [
            f"👥 <b>Top Holders of {_token_title(report.map_data)}</b>",
            *enumerate_blocks(nodes, holder_block, max_display, "holders"),
            f"<b>Total Holders Analyzed:</b> {len(nodes)}",
        ]
    )


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

def _token_heading(overview: dict, address: str) -> str:
    name = safe_html(overview.get("name") or "Unknown token")
    symbol = safe_html(overview.get("symbol") or "?")
    return f"🪙 <b>{name} ({symbol})</b>\n<code>{safe_html(address)}</code>"


def token_detail_template(report) -> str:
    o = report.overview
    return _join(
        [
            _token_heading(o, report.address),
            (
                f"<b>Price:</b> {fmt_usd(o.get('price'))}\n"
                f"<b>24h Change:</b> {fmt_change(o.get('price_change_24h'))}\n"
                f"<b>Market Cap:</b> {fmt_usd(o.get('market_cap'))}\n"
                f"<b>FDV:</b> {fmt_usd(o.get('fdv'))}\n"
                f"<b>Liquidity:</b> {fmt_usd(o.get('liquidity'))}\n"
                f"<b>24h Volume:</b> {fmt_usd(o.get('volume_24h'))}"
            ),
            (
                f"<b>Holders:</b> {fmt_amount(o.get('holders'))}\n"
                f"<b>Circulating Supply:</b> {fmt_compact(o.get('supply'))}\n"
                f"<b>Last Trade:</b> {fmt_timestamp(o.get('last_trade'))}"
            ),
        ]
    )


def price_chart_caption(report) -> str:
    o = report.overview
    closes = [row["close"] for row in report.history]
    volume = sum(row.get("volume_usd") or 0.0 for row in report.history)
    period_change = None
    if len(closes) > 1 and closes[0]:
        period_change = (closes[-1] - closes[0]) / closes[0] * 100
    return (
        f"📈 <b>{safe_html(o.get('name') or 'Unknown token')} ({safe_html(o.get('symbol') or '?')})</b>\n"
        f"<b>Last Close:</b> {fmt_usd(closes[-1] if closes else None)}\n"
        f"<b>Period Change:</b> {fmt_change(period_change)}\n"
        f"<b>High / Low:</b> {fmt_usd(max(closes) if closes else None)} / {fmt_usd(min(closes) if closes else None)}\n"
        f"<b>Period Volume:</b> {fmt_usd(volume)}\n"
        f"<b>Candles:</b> {len(closes)}"
    )


def price_chart_template(report) -> str:
    return _join([price_chart_caption(report), _verdict_block(report.verdict)])


def wallet_token_block(index: int, token: dict) -> str:
    name = f" ({safe_html(token['name'])})" if token.get("name") else ""
    return (
        f"{index}. <b>{safe_html(token.get('symbol') or '?')}</b>{name}\n"
        f"   <b>Amount:</b> {fmt_amount(token.get('amount'))}\n"
        f"   <b>Price:</b> {fmt_usd(token.get('price_usd'))}\n"
        f"   <b>Value:</b> {fmt_usd(token.get('value_usd'))}"
    )


def wallet_balances_template(report, max_display: int = 10) -> str:
    total = report.total_usd

    def row(index: int, token: dict) -> str:
        block = wallet_token_block(index, token)
        value = token.get("value_usd")
        if total and value is not None:
            block += f"\n   <b>Share:</b> {fmt_ratio(value / total)}"
        return block

    return _join(
        [
            f"💼 <b>Wallet Balances</b>\n<code>{safe_html(report.wallet)}</code>\n\n"
            f"<b>Total Value:</b> {fmt_usd(total)}\n<b>Tokens:</b> {len(report.tokens)}",
            *enumerate_blocks(report.tokens, row, max_display, "tokens"),
        ]
    )


def wallet_balances_caption(report) -> str:
    return f"💼 Token balance distribution\n<b>Total Value:</b> {fmt_usd(report.total_usd)}"


def pnl_token_block(index: int, token: dict) -> str:
    return (
        f"{index}. <b>{safe_html(token.get('symbol') or '?')}</b>\n"
        f"   <b>Realized:</b> {fmt_usd(token.get('realized_usd'))}\n"
        f"   <b>Unrealized:</b> {fmt_usd(token.get('unrealized_usd'))}\n"
        f"   <b>Total:</b> {fmt_usd(token.get('total_usd'))}\n"
        f"   <b>ROI:</b> {fmt_pct(token.get('roi_pct'))}"
    )


def wallet_pnl_template(report, max_display: int = 10) -> str:
    s = report.summary
    total = s.get("total_usd")
    emoji = "📊" if total is None else ("🟢" if total >= 0 else "🔴")
    return _join(
        [
            f"{emoji} <b>Wallet PnL</b>\n<code>{safe_html(report.wallet)}</code>",
            (
                f"<b>Realized PnL:</b> {fmt_usd(s.get('realized_usd'))}\n"
                f"<b>Unrealized PnL:</b> {fmt_usd(s.get('unrealized_usd'))}\n"
                f"<b>Total PnL:</b> {fmt_usd(total)}\n"
                f"<b>Total Invested:</b> {fmt_usd(s.get('total_invested_usd'))}\n"
                f"<b>Win Rate:</b> {fmt_ratio(s.get('win_rate'))}\n"
                f"<b>Trades:</b> {fmt_amount(s.get('total_trades'))}"
            ),
            *enumerate_blocks(s.get("tokens") or [], pnl_token_block, max_display, "tokens"),
        ]
    )
