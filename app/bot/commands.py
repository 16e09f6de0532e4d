"""Command grammar and dispatch.

Commands live in one ordered table. Each entry knows its keyword, how to turn
the words after the keyword into a typed argument record, and how to explain
itself when those words are wrong. Bad arguments never reach a handler.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from app.bot.templates import error_text, fallback_text, unknown_command_text, usage_text
from app.core.config import SUPPORTED_CHAINS
from app.core.errors import DeliveryError, ValidationError

logger = logging.getLogger(__name__)

EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


@dataclass(frozen=True)
class SessionContext:
    chat_id: int
    text: str
    user_id: int | None = None
    first_name: str | None = None


@dataclass(frozen=True)
class NoArgs:
    pass


@dataclass(frozen=True)
class AddressArgs:
    address: str


@dataclass(frozen=True)
class ChainTokenArgs:
    chain: str
    token: str


def is_address(value: str) -> bool:
    return bool(EVM_ADDRESS_RE.match(value) or SOLANA_ADDRESS_RE.match(value))


def parse_no_args(words: list[str]) -> NoArgs:
    return NoArgs()


def address_parser(noun: str) -> Callable[[list[str]], AddressArgs]:
    def parse(words: list[str]) -> AddressArgs:
        if not words:
            raise ValidationError(f"Please provide a {noun}.")
        if len(words) > 1:
            raise ValidationError(f"Please provide exactly one {noun}.")
        if not is_address(words[0]):
            raise ValidationError(f"That doesn't look like a valid {noun}.")
        return AddressArgs(address=words[0])

    return parse


def parse_chain_token(words: list[str]) -> ChainTokenArgs:
    if len(words) < 2:
        raise ValidationError("Please provide both chain and token address.")
    if len(words) > 2:
        raise ValidationError("Please provide only a chain and a token address.")
    chain, token = words[0].lower(), words[1]
    if chain not in SUPPORTED_CHAINS:
        raise ValidationError(f"Unsupported chain. Available chains: {', '.join(SUPPORTED_CHAINS)}.")
    if not is_address(token):
        raise ValidationError("That doesn't look like a valid token address.")
    return ChainTokenArgs(chain=chain, token=token)


Handler = Callable[[Any, SessionContext, Any], Awaitable[None]]


@dataclass(frozen=True)
class CommandSpec:
    name: str
    handler: Handler
    parse_args: Callable[[list[str]], Any] = parse_no_args
    usage: str = ""
    example: str = ""
    description: str = ""
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", re.compile(rf"^/{re.escape(self.name)}(?:@\w+)?(?=\s|$)"))
        if not self.usage:
            object.__setattr__(self, "usage", f"/{self.name}")
        if not self.example:
            object.__setattr__(self, "example", self.usage)


class CommandRouter:
    def __init__(self, hub, commands: Sequence[CommandSpec]) -> None:
        self.hub = hub
        self.commands = tuple(commands)

    def match(self, text: str) -> tuple[CommandSpec, list[str]] | None:
        for spec in self.commands:
            m = spec.pattern.match(text)
            if m:
                return spec, text[m.end():].split()
        return None

    async def _reply(self, ctx: SessionContext, text: str) -> None:
        try:
            await self.hub.transport.send_message(ctx.chat_id, text)
        except DeliveryError as exc:
            logger.warning("reply_failed", extra={"event": "reply_failed", "chat_id": ctx.chat_id, "error": str(exc)})

    async def dispatch(self, ctx: SessionContext) -> None:
        text = (ctx.text or "").strip()
        found = self.match(text)
        if found is None:
            if text.startswith("/"):
                await self._reply(ctx, unknown_command_text(text))
            else:
                await self._reply(ctx, fallback_text(text))
            return

        spec, words = found
        try:
            args = spec.parse_args(words)
        except ValidationError as exc:
            logger.info(
                "command_rejected",
                extra={"event": "command_rejected", "command": spec.name, "chat_id": ctx.chat_id, "error": str(exc)},
            )
            await self._reply(ctx, usage_text(spec, str(exc)))
            return

        logger.info(
            "command_received",
            extra={"event": "command_received", "command": spec.name, "chat_id": ctx.chat_id, "user_id": ctx.user_id},
        )
        started = time.perf_counter()
        try:
            await spec.handler(self.hub, ctx, args)
        except Exception:  # noqa: BLE001
            logger.exception(
                "command_failed", extra={"event": "command_failed", "command": spec.name, "chat_id": ctx.chat_id}
            )
            await self._reply(ctx, error_text(f"/{spec.name}"))
        finally:
            logger.info(
                "command_finished",
                extra={
                    "event": "command_finished",
                    "command": spec.name,
                    "chat_id": ctx.chat_id,
                    "latency_ms": int((time.perf_counter() - started) * 1000),
                },
            )
