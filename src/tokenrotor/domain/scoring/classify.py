"""Keyword and market-size category heuristics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import Category

if TYPE_CHECKING:
    from tokenrotor.domain.model import CanonicalMarketFields

MEME_HINTS: Final[tuple[str, ...]] = (
    "pepe",
    "wojak",
    "doge",
    "bonk",
    "elon",
    "meme",
    "cat",
    "kitten",
    "baby",
    "moon",
    "pump",
)
SMALL_MARKET_CAP_USD: Final = 10_000_000.0
LOW_LIQUIDITY_USD: Final = 2_000_000.0


def classify_category(
    symbol: str | None,
    name: str | None,
    market: CanonicalMarketFields,
) -> Category:
    text = f"{symbol or ''} {name or ''}".lower()
    if not text.strip() and market.market_cap is None and market.liquidity_usd is None:
        return Category.UNKNOWN
    if any(hint in text for hint in MEME_HINTS):
        return Category.MEME
    market_cap = market.market_cap or 0.0
    liquidity = market.liquidity_usd or 0.0
    if 0 < market_cap < SMALL_MARKET_CAP_USD and 0 < liquidity < LOW_LIQUIDITY_USD:
        return Category.MEME
    return Category.OTHER
