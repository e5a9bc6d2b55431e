"""Project Solscan token entries onto the canonical market model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import (
    CanonicalMarketFields,
    Chain,
    PartialTokenRecord,
    ProviderId,
    TokenKey,
)

from .schema import SolscanToken, SolscanTokenInput

if TYPE_CHECKING:
    from datetime import datetime

    from tokenrotor.domain.model import RawProviderRecord

_SECONDS_PER_DAY: Final = 86_400


def ensure_token(payload: SolscanTokenInput | object) -> SolscanToken:
    if isinstance(payload, SolscanToken):
        return payload
    return SolscanToken.model_validate(payload)


def _age_days(token: SolscanToken, received_at: datetime) -> float | None:
    if token.created_time is None or token.created_time <= 0:
        return None
    return max((received_at.timestamp() - token.created_time) / _SECONDS_PER_DAY, 0.0)


def project_solscan(record: RawProviderRecord) -> PartialTokenRecord | None:
    token = ensure_token(record.payload)
    if not token.address:
        return None
    return PartialTokenRecord(
        key=TokenKey(chain=Chain.SOLANA, address=token.address),
        provider=ProviderId.SOLSCAN,
        received_at=record.received_at,
        symbol=token.symbol,
        name=token.name,
        market=CanonicalMarketFields(
            price_usd=token.price_usd,
            market_cap=token.market_cap,
            price_change_h24=token.price_change_h24,
            holders=token.holders,
            logo_url=token.icon,
            age_days=_age_days(token, record.received_at),
        ),
    )
