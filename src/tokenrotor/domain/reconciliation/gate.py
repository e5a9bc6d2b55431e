"""Completeness gate and publication filter for merged candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import PRIMARY_PROVIDER

from .contracts import GateOutcome

if TYPE_CHECKING:
    from tokenrotor.domain.model import Candidate, TokenKey

NATIVE_SYMBOLS: Final[frozenset[str]] = frozenset({"SOL", "WSOL", "USDC", "MOVE"})
NATIVE_NAME_FRAGMENTS: Final[tuple[str, ...]] = ("WRAPPED SOL", "USD COIN")
OFFICIAL_NATIVE_ADDRESSES: Final[frozenset[str]] = frozenset(
    {
        "So11111111111111111111111111111111111111112",
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "0x1::aptos_coin::AptosCoin",
    }
)


def check_completeness(candidate: Candidate) -> GateOutcome:
    """Price, liquidity and volume must be known.

    When liquidity or volume came from the primary aggregator, its transaction counts
    must be known too.
    """

    market = candidate.market
    if market.price_usd is None:
        return GateOutcome.MISSING_PRICE
    if market.liquidity_usd is None:
        return GateOutcome.MISSING_LIQUIDITY
    if market.volume_24h is None:
        return GateOutcome.MISSING_VOLUME
    primary_evidence = PRIMARY_PROVIDER in (
        candidate.field_sources.get("liquidity_usd"),
        candidate.field_sources.get("volume_24h"),
    )
    if primary_evidence and market.tx_count_h24 is None:
        return GateOutcome.MISSING_TXNS
    return GateOutcome.PASSED


def is_native_lookalike(candidate: Candidate) -> bool:
    symbol = (candidate.symbol or "").upper()
    name = (candidate.name or "").upper()
    if symbol not in NATIVE_SYMBOLS and not any(part in name for part in NATIVE_NAME_FRAGMENTS):
        return False
    return candidate.key.address not in OFFICIAL_NATIVE_ADDRESSES


@dataclass(slots=True, frozen=True, kw_only=True)
class PublicationPolicy:
    """Listing rules applied after the completeness gate. Pinned keys always pass."""

    min_age_days: float | None = None
    pinned: frozenset[TokenKey] = field(default_factory=frozenset)

    def check(self, candidate: Candidate) -> GateOutcome:
        if candidate.key in self.pinned:
            return GateOutcome.PASSED
        if is_native_lookalike(candidate):
            return GateOutcome.FILTERED_NATIVE
        age = candidate.market.age_days
        if self.min_age_days is not None and age is not None and age < self.min_age_days:
            return GateOutcome.FILTERED_AGE
        return GateOutcome.PASSED
