"""Project BirdEye token entries onto the canonical market model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tokenrotor.domain.model import (
    CanonicalMarketFields,
    Chain,
    PartialTokenRecord,
    ProviderId,
    TokenKey,
)
from tokenrotor.domain.normalization import map_chain_id

from .schema import BirdEyeToken, BirdEyeTokenInput

if TYPE_CHECKING:
    from tokenrotor.domain.model import RawProviderRecord


def ensure_token(payload: BirdEyeTokenInput | object) -> BirdEyeToken:
    if isinstance(payload, BirdEyeToken):
        return payload
    return BirdEyeToken.model_validate(payload)


def project_birdeye(record: RawProviderRecord) -> PartialTokenRecord | None:
    token = ensure_token(record.payload)
    if not token.address:
        return None
    hint = token.chain or record.chain_hint
    chain = map_chain_id(hint) if hint else Chain.SOLANA
    return PartialTokenRecord(
        key=TokenKey(chain=chain, address=token.address),
        provider=ProviderId.BIRDEYE,
        received_at=record.received_at,
        symbol=token.symbol,
        name=token.name,
        market=CanonicalMarketFields(
            price_usd=token.price_usd,
            liquidity_usd=token.liquidity,
            market_cap=token.market_cap,
            volume_24h=token.volume_24h,
            price_change_h1=token.price_change_h1,
            price_change_h6=token.price_change_h6,
            price_change_h24=token.price_change_h24,
            holders=token.holders,
            logo_url=token.logo_url,
        ),
    )
