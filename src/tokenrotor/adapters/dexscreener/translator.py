"""Project DexScreener pairs onto the canonical market model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import (
    CanonicalMarketFields,
    PartialTokenRecord,
    ProviderId,
    TokenKey,
)
from tokenrotor.domain.normalization import map_chain_id, sum_counts

from .schema import PairPayload, PairPayloadInput, TokenRef, TxnCounts

if TYPE_CHECKING:
    from datetime import datetime

    from tokenrotor.domain.model import RawProviderRecord

# Pools quoted against these symbols describe the other side of the pair.
QUOTE_SYMBOLS: Final = frozenset({"SOL", "WSOL", "USDC", "MOVE"})

_MS_PER_DAY: Final = 86_400_000


def ensure_pair(payload: PairPayloadInput | object) -> PairPayload:
    if isinstance(payload, PairPayload):
        return payload
    return PairPayload.model_validate(payload)


def select_token(pair: PairPayload) -> TokenRef:
    """Return the token the pair is about, skipping a native or stable base."""

    symbol = (pair.base_token.symbol or "").upper()
    if symbol in QUOTE_SYMBOLS and pair.quote_token.address:
        return pair.quote_token
    return pair.base_token


def _tx_count(counts: TxnCounts | None) -> int | None:
    if counts is None:
        return None
    return sum_counts(counts.buys, counts.sells)


def _age_days(pair: PairPayload, received_at: datetime) -> float | None:
    if pair.pair_created_at is None or pair.pair_created_at <= 0:
        return None
    elapsed_ms = received_at.timestamp() * 1000 - pair.pair_created_at
    return max(elapsed_ms / _MS_PER_DAY, 0.0)


def project_dexscreener(record: RawProviderRecord) -> PartialTokenRecord | None:
    pair = ensure_pair(record.payload)
    token = select_token(pair)
    if not token.address:
        return None
    market = CanonicalMarketFields(
        price_usd=pair.price_usd,
        liquidity_usd=pair.liquidity.usd,
        market_cap=pair.fdv if pair.fdv is not None else pair.market_cap,
        volume_24h=pair.volume.h24,
        price_change_m5=pair.price_change.m5,
        price_change_h1=pair.price_change.h1,
        price_change_h6=pair.price_change.h6,
        price_change_h24=pair.price_change.h24,
        tx_count_h1=_tx_count(pair.txns.h1),
        tx_count_h24=_tx_count(pair.txns.h24),
        logo_url=pair.info.image_url,
        age_days=_age_days(pair, record.received_at),
    )
    return PartialTokenRecord(
        key=TokenKey(chain=map_chain_id(pair.chain_id or record.chain_hint), address=token.address),
        provider=ProviderId.DEXSCREENER,
        received_at=record.received_at,
        symbol=token.symbol,
        name=token.name,
        market=market,
    )
