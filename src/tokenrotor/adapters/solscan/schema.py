"""Pydantic models describing the Solscan token list payloads."""

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


class SolscanToken(ProviderBaseModel):
    address: LooseStr = None
    symbol: LooseStr = None
    name: LooseStr = None
    icon: LooseStr = Field(default=None, validation_alias=AliasChoices("icon", "logo"))
    price_usd: LooseFloat = Field(default=None, validation_alias=AliasChoices("price", "priceUsd"))
    market_cap: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("market_cap", "marketCap"),
    )
    price_change_h24: LooseFloat = Field(
        default=None,
        validation_alias=AliasChoices("price_24h_change", "priceChange24h"),
    )
    holders: LooseInt = Field(default=None, validation_alias=AliasChoices("holder", "holders"))
    created_time: LooseInt = None


class SolscanResponse(ProviderBaseModel):
    success: bool = True
    data: object = None

    def items(self) -> list[Mapping[str, object]]:
        return json_items(self.data)


type SolscanTokenInput = SolscanToken | Mapping[str, object]
