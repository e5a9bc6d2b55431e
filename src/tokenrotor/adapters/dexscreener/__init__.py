"""Public interface for the DexScreener adapter."""

from __future__ import annotations

from .client import DexScreenerFeed
from .schema import PairPayload, SearchResponse
from .translator import project_dexscreener, select_token

__all__ = [
    "DexScreenerFeed",
    "PairPayload",
    "SearchResponse",
    "project_dexscreener",
    "select_token",
]
