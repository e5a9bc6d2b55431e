"""Project Moralis token entries onto the canonical market model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tokenrotor.domain.model import (
    CanonicalMarketFields,
    Chain,
    PartialTokenRecord,
    ProviderId,
    TokenKey,
)

from .schema import MoralisToken, MoralisTokenInput

if TYPE_CHECKING:
    from tokenrotor.domain.model import RawProviderRecord


def ensure_token(payload: MoralisTokenInput | object) -> MoralisToken:
    if isinstance(payload, MoralisToken):
        return payload
    return MoralisToken.model_validate(payload)


def project_moralis(record: RawProviderRecord) -> PartialTokenRecord | None:
    # The Solana gateway only serves Solana mints.
    token = ensure_token(record.payload)
    if not token.address:
        return None
    return PartialTokenRecord(
        key=TokenKey(chain=Chain.SOLANA, address=token.address),
        provider=ProviderId.MORALIS,
        received_at=record.received_at,
        symbol=token.symbol,
        name=token.name,
        market=CanonicalMarketFields(
            price_usd=token.price_usd,
            liquidity_usd=token.liquidity_usd,
            market_cap=token.market_cap,
            volume_24h=token.volume_24h,
            holders=token.holders,
            logo_url=token.logo,
        ),
    )
