"""Pydantic models describing the Moralis Solana token payloads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import AliasChoices, Field

from tokenrotor.adapters.feeds import (
    LooseFloat,
    LooseInt,
    LooseStr,
    ProviderBaseModel,
    json_items,
)


class MoralisToken(ProviderBaseModel):
    address: LooseStr = Field(
        default=None,
        validation_alias=AliasChoices("tokenAddress", "token_address", "address"),
    )
    symbol: LooseStr = None
    name: LooseStr = None
    logo: LooseStr = None
    price_usd: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("priceUsd", "price_usd"),
    )
    liquidity_usd: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("liquidity", "liquidityUsd", "liquidity_usd"),
    )
    market_cap: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("fullyDilutedValuation", "market_cap", "marketCap"),
    )
    volume_24h: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("volume_24h", "volume24h"),
    )
    holders: LooseInt = None


class MoralisResponse(ProviderBaseModel):
    result: object = None

    def items(self) -> list[Mapping[str, object]]:
        return json_items(self.result)


type MoralisTokenInput = MoralisToken | Mapping[str, object]
