"""Pydantic models describing the DexScreener search payloads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import Field

from tokenrotor.adapters.feeds import LooseFloat, LooseInt, LooseStr, ProviderBaseModel


class TokenRef(ProviderBaseModel):
    address: LooseStr = None
    name: LooseStr = None
    symbol: LooseStr = None


class TxnCounts(ProviderBaseModel):
    buys: LooseInt = None
    sells: LooseInt = None


class TxnWindows(ProviderBaseModel):
    m5: TxnCounts | None = None
    h1: TxnCounts | None = None
    h6: TxnCounts | None = None
    h24: TxnCounts | None = None


class PriceChange(ProviderBaseModel):
    m5: LooseFloat = None
    h1: LooseFloat = None
    h6: LooseFloat = None
    h24: LooseFloat = None


class Volume(ProviderBaseModel):
    h1: LooseFloat = None
    h24: LooseFloat = None


class Liquidity(ProviderBaseModel):
    usd: LooseFloat = None


class PairInfo(ProviderBaseModel):
    image_url: LooseStr = Field(default=None, alias="imageUrl")


class PairPayload(ProviderBaseModel):
    chain_id: LooseStr = Field(default=None, alias="chainId")
    pair_address: LooseStr = Field(default=None, alias="pairAddress")
    base_token: TokenRef = Field(default_factory=TokenRef, alias="baseToken")
    quote_token: TokenRef = Field(default_factory=TokenRef, alias="quoteToken")
    price_usd: LooseFloat = Field(default=None, alias="priceUsd")
    txns: TxnWindows = Field(default_factory=TxnWindows)
    volume: Volume = Field(default_factory=Volume)
    price_change: PriceChange = Field(default_factory=PriceChange, alias="priceChange")
    liquidity: Liquidity = Field(default_factory=Liquidity)
    fdv: LooseFloat = None
    market_cap: LooseFloat = Field(default=None, alias="marketCap")
    pair_created_at: LooseInt = Field(default=None, alias="pairCreatedAt")
    info: PairInfo = Field(default_factory=PairInfo)


class SearchResponse(ProviderBaseModel):
    pairs: list[dict[str, object]] | None = None


type PairPayloadInput = PairPayload | Mapping[str, object]
