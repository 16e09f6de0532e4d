from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def map_link_menu(map_url: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="🫧 Open bubble map", url=map_url)
    kb.adjust(1)
    return kb.as_markup()


def token_links_menu(address: str, chain: str = "solana") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Birdeye", url=f"https://birdeye.so/token/{address}?chain={chain}")
    kb.button(text="DexScreener", url=f"https://dexscreener.com/{chain}/{address}")
    kb.adjust(2)
    return kb.as_markup()
