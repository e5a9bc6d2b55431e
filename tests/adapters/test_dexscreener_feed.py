from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx
import pytest

from tokenrotor.adapters.dexscreener import DexScreenerFeed, PairPayload, project_dexscreener
from tokenrotor.config import get_dexscreener_config
from tokenrotor.domain.model import Chain, ProviderId
from tokenrotor.domain.normalization import Normalizer
from tests.support.http import failing_handler, garbage_handler, make_client_factory
from tests.support.tokens import MINT_A, MINT_B, MINT_C, NOW, make_raw, solana_key

SOL_MINT = "So11111111111111111111111111111111111111112"


def _pair(address: str, *, liquidity: float, symbol: str = "BONK") -> dict[str, object]:
    return {
        "chainId": "solana",
        "pairAddress": f"pool-{address[:6]}-{int(liquidity)}",
        "baseToken": {"address": address, "name": "Bonk", "symbol": symbol},
        "quoteToken": {"address": SOL_MINT, "name": "Wrapped SOL", "symbol": "SOL"},
        "priceUsd": "0.0000213",
        "txns": {"h1": {"buys": 2, "sells": 1}, "h24": {"buys": 5, "sells": 3}},
        "volume": {"h24": 20000},
        "priceChange": {"m5": 0.1, "h1": -1.5, "h6": 3, "h24": 12.5},
        "liquidity": {"usd": liquidity},
        "fdv": 1_500_000,
        "marketCap": 1_200_000,
        "pairCreatedAt": int((NOW - timedelta(days=2)).timestamp() * 1000),
        "info": {"imageUrl": "https://cdn.example/bonk.png"},
    }


def _feed(handler: object) -> DexScreenerFeed:
    return DexScreenerFeed(
        config=get_dexscreener_config(),
        client_factory=make_client_factory(handler),  # type: ignore[arg-type]
        clock=lambda: NOW,
    )


def test_fetch_keeps_deepest_pool_per_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "pairs": [
                    _pair(MINT_A, liquidity=10_000),
                    _pair(MINT_A, liquidity=50_000),
                    _pair(MINT_B, liquidity=7_000),
                ]
            },
        )

    records = asyncio.run(_feed(handler).fetch())

    assert records is not None
    assert [record.address for record in records] == [MINT_A, MINT_B]
    deepest = records[0].payload
    assert isinstance(deepest, PairPayload)
    assert deepest.liquidity.usd == 50_000
    assert seen[0].url.path == "/latest/dex/search"
    assert seen[0].url.params["q"] == "solana"


def test_fetch_passes_malformed_pairs_to_normalization() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"pairs": [_pair(MINT_A, liquidity=1.0), {"baseToken": "oops"}]}
        )

    records = asyncio.run(_feed(handler).fetch())
    assert records is not None
    normalizer = Normalizer(projections={ProviderId.DEXSCREENER: project_dexscreener})

    partials = normalizer.normalize_all(records)

    assert [partial.key.address for partial in partials] == [MINT_A]
    assert normalizer.rejected["malformed"] == 1


@pytest.mark.parametrize("handler", [failing_handler(500), garbage_handler])
def test_unavailable_provider_yields_none(handler: object) -> None:
    assert asyncio.run(_feed(handler).fetch()) is None


def test_lookup_fetches_requested_tokens_only() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "pairs": [
                    _pair(MINT_B, liquidity=7_000),
                    _pair(MINT_A, liquidity=10_000),
                    _pair(MINT_A, liquidity=50_000),
                    _pair(MINT_C, liquidity=90_000),
                ]
            },
        )

    keys = [solana_key(MINT_B), solana_key(MINT_A), solana_key(MINT_B)]
    records = asyncio.run(_feed(handler).lookup(keys))

    assert records is not None
    assert sorted(record.address or "" for record in records) == sorted([MINT_A, MINT_B])
    deepest = next(record.payload for record in records if record.address == MINT_A)
    assert isinstance(deepest, PairPayload)
    assert deepest.liquidity.usd == 50_000
    assert len(seen) == 1
    assert seen[0].url.path == f"/latest/dex/tokens/{MINT_A},{MINT_B}"


def test_lookup_without_keys_makes_no_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("unexpected request")

    assert asyncio.run(_feed(handler).lookup([])) == []


@pytest.mark.parametrize("handler", [failing_handler(503), garbage_handler])
def test_lookup_unavailable_yields_none(handler: object) -> None:
    assert asyncio.run(_feed(handler).lookup([solana_key(MINT_A)])) is None


def test_projection_maps_pair_fields() -> None:
    raw = make_raw(ProviderId.DEXSCREENER, _pair(MINT_A, liquidity=50_000), address=MINT_A)

    partial = project_dexscreener(raw)

    assert partial is not None
    assert partial.key.chain is Chain.SOLANA
    assert partial.key.address == MINT_A
    assert partial.symbol == "BONK"
    market = partial.market
    assert market.price_usd == pytest.approx(0.0000213)
    assert market.liquidity_usd == 50_000
    assert market.market_cap == 1_500_000
    assert market.volume_24h == 20_000
    assert market.tx_count_h1 == 3
    assert market.tx_count_h24 == 8
    assert market.price_change_h24 == 12.5
    assert market.logo_url == "https://cdn.example/bonk.png"
    assert market.age_days == pytest.approx(2.0)


def test_projection_prefers_quote_token_when_base_is_native() -> None:
    pair = _pair(SOL_MINT, liquidity=1.0, symbol="SOL")
    pair["quoteToken"] = {"address": MINT_B, "name": "Dogwifhat", "symbol": "WIF"}

    partial = project_dexscreener(make_raw(ProviderId.DEXSCREENER, pair))

    assert partial is not None
    assert partial.key.address == MINT_B
    assert partial.symbol == "WIF"


def test_projection_keeps_zero_transactions_known() -> None:
    pair = _pair(MINT_A, liquidity=1.0)
    pair["txns"] = {"h24": {"buys": 0, "sells": 0}}
    pair.pop("fdv")

    partial = project_dexscreener(make_raw(ProviderId.DEXSCREENER, pair))

    assert partial is not None
    assert partial.market.tx_count_h24 == 0
    assert partial.market.tx_count_h1 is None
    assert partial.market.market_cap == 1_200_000
