from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from aiogram import F, Router
from aiogram.types import Message

from app.bot.commands import (
    AddressArgs,
    ChainTokenArgs,
    CommandRouter,
    CommandSpec,
    NoArgs,
    SessionContext,
    address_parser,
    parse_chain_token,
)
from app.bot.delivery import OutputItem, PhotoItem, Renderer, TextItem, assemble, deliver
from app.bot.keyboards import map_link_menu, token_links_menu
from app.bot.progress import CAMERA, CHART, HOURGLASS, MAGNIFIER, PEOPLE, WALLET, ProgressIndicator
from app.bot.templates import (
    help_text,
    holders_template,
    map_caption,
    map_report_template,
    price_chart_caption,
    price_chart_template,
    score_template,
    start_text,
    token_detail_template,
    wallet_balances_caption,
    wallet_balances_template,
    wallet_pnl_template,
)
from app.core.container import ServiceHub
from app.core.fmt import safe_html
from app.services.outcome import HardFailure, Outcome

router = Router()
_command_router: CommandRouter | None = None
logger = logging.getLogger(__name__)

EXAMPLE_EVM_TOKEN = "0x603c7f932ed1fc6575303d8fb018fdcbb0f39a95"
EXAMPLE_SOL_TOKEN = "So11111111111111111111111111111111111111112"
EXAMPLE_WALLET = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


async def run_pipeline(
    hub: ServiceHub,
    ctx: SessionContext,
    *,
    phrase: str,
    frames: Sequence[str],
    subject: str,
    fetch: Callable[[], Awaitable[Outcome]],
    render: Renderer,
) -> None:
    """Placeholder + animation while ``fetch`` runs, then hand the result to delivery."""
    progress = await ProgressIndicator.start(
        hub.transport, ctx.chat_id, phrase, frames, interval=hub.settings.progress_interval_sec
    )
    async with progress:
        try:
            outcome = await fetch()
        except Exception as exc:  # noqa: BLE001
            logger.exception("pipeline_failed", extra={"event": "pipeline_failed", "chat_id": ctx.chat_id})
            outcome = HardFailure(reason=repr(exc), kind="transport")
        if not isinstance(outcome, HardFailure) and getattr(outcome, "reason", None):
            logger.warning(
                "pipeline_degraded", extra={"event": "pipeline_degraded", "chat_id": ctx.chat_id, "error": outcome.reason}
            )
        try:
            items = assemble(outcome, render, subject)
        except Exception as exc:  # noqa: BLE001
            logger.exception("render_failed", extra={"event": "render_failed", "chat_id": ctx.chat_id})
            items = assemble(HardFailure(reason=repr(exc), kind="transport"), render, subject)
        await deliver(hub.transport, ctx.chat_id, progress, items, hub.settings.message_limit)


# ---------------------------------------------------------------------------
# Renderers: payload -> output items
# ---------------------------------------------------------------------------

def _render_map(max_display: int) -> Renderer:
    def render(report) -> list[OutputItem]:
        text = TextItem(map_report_template(report, max_display), reply_markup=map_link_menu(report.map_url))
        if report.screenshot is None:
            return [text]
        return [PhotoItem(report.screenshot, caption=map_caption(report), filename=f"{report.token}_map.png"), text]

    return render


def _render_screenshot(report) -> list[OutputItem]:
    if report.screenshot is None:
        note = "📸 Screenshot unavailable right now. Here are the map details instead."
        return [TextItem(f"{note}\n\n{map_caption(report)}", reply_markup=map_link_menu(report.map_url))]
    return [PhotoItem(report.screenshot, caption=map_caption(report), filename=f"{report.token}_map.png")]


def _render_chart(report) -> list[OutputItem]:
    markup = token_links_menu(report.address)
    if report.chart is None:
        return [TextItem(price_chart_template(report), reply_markup=markup)]
    return [
        PhotoItem(report.chart, caption=price_chart_caption(report), filename=f"{report.address}_chart.png"),
        TextItem(f"🤖 <b>AI verdict</b>\n{safe_html(report.verdict)}", reply_markup=markup),
    ]


def _render_balances(max_display: int) -> Renderer:
    def render(report) -> list[OutputItem]:
        text = TextItem(wallet_balances_template(report, max_display))
        if report.chart is None:
            return [text]
        return [PhotoItem(report.chart, caption=wallet_balances_caption(report), filename="balances.png"), text]

    return render


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

async def start_handler(hub: ServiceHub, ctx: SessionContext, args: NoArgs) -> None:
    await hub.transport.send_message(ctx.chat_id, start_text(ctx.first_name))


async def help_handler(hub: ServiceHub, ctx: SessionContext, args: NoArgs) -> None:
    await hub.transport.send_message(ctx.chat_id, help_text(COMMANDS))


async def token_handler(hub: ServiceHub, ctx: SessionContext, args: AddressArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"🔍 Fetching token details for {safe_html(args.address)}...",
        frames=HOURGLASS,
        subject="the token details",
        fetch=lambda: hub.orchestrator.token_detail(args.address),
        render=lambda report: [
            TextItem(token_detail_template(report), reply_markup=token_links_menu(report.address))
        ],
    )


async def map_handler(hub: ServiceHub, ctx: SessionContext, args: ChainTokenArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"🔍 Fetching map data for {safe_html(args.token)} on {args.chain}...",
        frames=HOURGLASS,
        subject="the map data",
        fetch=lambda: hub.orchestrator.token_map(args.chain, args.token),
        render=_render_map(hub.settings.max_list_display),
    )


async def score_handler(hub: ServiceHub, ctx: SessionContext, args: ChainTokenArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"Analyzing token {safe_html(args.token)} on {args.chain}...",
        frames=MAGNIFIER,
        subject="the score data",
        fetch=lambda: hub.orchestrator.token_score(args.chain, args.token),
        render=lambda report: [TextItem(score_template(report), reply_markup=map_link_menu(report.map_url))],
    )


async def holders_handler(hub: ServiceHub, ctx: SessionContext, args: ChainTokenArgs) -> None:
    max_display = hub.settings.max_list_display
    await run_pipeline(
        hub,
        ctx,
        phrase=f"Analyzing holders for {safe_html(args.token)} on {args.chain}...",
        frames=PEOPLE,
        subject="the holders data",
        fetch=lambda: hub.orchestrator.token_holders(args.chain, args.token),
        render=lambda report: [
            TextItem(holders_template(report, max_display), reply_markup=map_link_menu(report.map_url))
        ],
    )


async def screenshot_handler(hub: ServiceHub, ctx: SessionContext, args: ChainTokenArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"📸 Generating screenshot for {safe_html(args.token)} on {args.chain}. This may take a moment...",
        frames=CAMERA,
        subject="the screenshot",
        fetch=lambda: hub.orchestrator.map_screenshot(args.chain, args.token),
        render=_render_screenshot,
    )


async def chart_handler(hub: ServiceHub, ctx: SessionContext, args: AddressArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"📊 Building price chart for {safe_html(args.address)}...",
        frames=CHART,
        subject="the price chart",
        fetch=lambda: hub.orchestrator.price_chart(args.address),
        render=_render_chart,
    )


async def balances_handler(hub: ServiceHub, ctx: SessionContext, args: AddressArgs) -> None:
    await run_pipeline(
        hub,
        ctx,
        phrase=f"💼 Fetching token balances for {safe_html(args.address)}...",
        frames=WALLET,
        subject="the wallet balances",
        fetch=lambda: hub.orchestrator.wallet_balances(args.address),
        render=_render_balances(hub.settings.max_list_display),
    )


async def pnl_handler(hub: ServiceHub, ctx: SessionContext, args: AddressArgs) -> None:
    max_display = hub.settings.max_list_display
    await run_pipeline(
        hub,
        ctx,
        phrase=f"💰 Calculating PnL for {safe_html(args.address)}...",
        frames=WALLET,
        subject="the wallet PnL",
        fetch=lambda: hub.orchestrator.wallet_pnl(args.address),
        render=lambda report: [TextItem(wallet_pnl_template(report, max_display))],
    )


COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("start", start_handler, description="Welcome message"),
    CommandSpec("help", help_handler, description="Show this help message"),
    CommandSpec(
        "token",
        token_handler,
        address_parser("token address"),
        usage="/token <token_address>",
        example=f"/token {EXAMPLE_SOL_TOKEN}",
        description="Price, market cap, liquidity and volume",
    ),
    CommandSpec(
        "map",
        map_handler,
        parse_chain_token,
        usage="/map <chain> <token_address>",
        example=f"/map bsc {EXAMPLE_EVM_TOKEN}",
        description="Holder map analytics with score, top holders and AI verdict",
    ),
    CommandSpec(
        "score",
        score_handler,
        parse_chain_token,
        usage="/score <chain> <token_address>",
        example=f"/score bsc {EXAMPLE_EVM_TOKEN}",
        description="Token decentralization score",
    ),
    CommandSpec(
        "holders",
        holders_handler,
        parse_chain_token,
        usage="/holders <chain> <token_address>",
        example=f"/holders bsc {EXAMPLE_EVM_TOKEN}",
        description="Top token holders",
    ),
    CommandSpec(
        "screenshot",
        screenshot_handler,
        parse_chain_token,
        usage="/screenshot <chain> <token_address>",
        example=f"/screenshot bsc {EXAMPLE_EVM_TOKEN}",
        description="Screenshot of the bubble map",
    ),
    CommandSpec(
        "chart",
        chart_handler,
        address_parser("token address"),
        usage="/chart <token_address>",
        example=f"/chart {EXAMPLE_SOL_TOKEN}",
        description="Price and volume chart with AI verdict",
    ),
    CommandSpec(
        "balances",
        balances_handler,
        address_parser("wallet address"),
        usage="/balances <wallet_address>",
        example=f"/balances {EXAMPLE_WALLET}",
        description="Wallet token balances",
    ),
    CommandSpec(
        "pnl",
        pnl_handler,
        address_parser("wallet address"),
        usage="/pnl <wallet_address>",
        example=f"/pnl {EXAMPLE_WALLET}",
        description="Wallet profit and loss",
    ),
)


# ---------------------------------------------------------------------------
# aiogram glue
# ---------------------------------------------------------------------------

def init_handlers(hub: ServiceHub) -> None:
    global _command_router
    _command_router = CommandRouter(hub, COMMANDS)


def _require_router() -> CommandRouter:
    if _command_router is None:
        raise RuntimeError("Handlers not initialized")
    return _command_router


@router.message(F.text)
async def text_message(message: Message) -> None:
    ctx = SessionContext(
        chat_id=message.chat.id,
        text=message.text or "",
        user_id=message.from_user.id if message.from_user else None,
        first_name=message.from_user.first_name if message.from_user else None,
    )
    await _require_router().dispatch(ctx)
