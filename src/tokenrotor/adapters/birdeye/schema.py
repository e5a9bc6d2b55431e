"""Pydantic models describing the BirdEye token list payloads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import AliasChoices, Field

from tokenrotor.adapters.feeds import (
    LooseFloat,
    LooseInt,
    LooseStr,
    ProviderBaseModel,
    json_items,
    lookup,
)


class BirdEyeToken(ProviderBaseModel):
    address: LooseStr = None
    symbol: LooseStr = None
    name: LooseStr = None
    chain: LooseStr = None
    price_usd: LooseFloat = Field(default=None, validation_alias=AliasChoices("priceUsd", "price"))
    liquidity: LooseFloat = None
    volume_24h: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("volume24h", "v24hUSD", "v24h"),
    )
    price_change_h1: LooseFloat = Field(default=None, alias="priceChange1h")
    price_change_h6: LooseFloat = Field(default=None, alias="priceChange6h")
    price_change_h24: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("priceChange24h", "v24hChangePercent"),
    )
    market_cap: LooseFloat = Field(default=None, validation_alias=AliasChoices("fdv", "mc"))
    holders: LooseInt = Field(default=None, validation_alias=AliasChoices("holder", "holders"))
    logo_url: LooseStr = Field(default=None, validation_alias=AliasChoices("logoURI", "logo"))


class BirdEyeResponse(ProviderBaseModel):
    success: bool = True
    message: str | None = None
    data: object = None

    def items(self) -> list[Mapping[str, object]]:
        """Token entries live under ``data.tokens`` or directly under ``data``."""

        tokens = lookup(self.data, "tokens")
        return json_items(tokens if tokens is not None else self.data)


type BirdEyeTokenInput = BirdEyeToken | Mapping[str, object]
