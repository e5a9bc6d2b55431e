"""Deterministic fallback community score.

The score is a weighted sum of capped, linear sub-scores:

=====================  ======  =========================
component              points  saturates at
=====================  ======  =========================
holders                0-30    10,000 holders
24h transactions       0-25    1,000 transactions
24h price change       0-15    +100 % (losses score 0)
liquidity              0-15    500,000 USD
age bonus              5       age of at least one day
inverse risk           0-10    risk score 0 (unvetted: 0)
=====================  ======  =========================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from tokenrotor.domain.model import CanonicalMarketFields


@dataclass(slots=True, frozen=True)
class Component:
    points: float
    saturation: float

    def score(self, value: float | None) -> float:
        if value is None or value <= 0:
            return 0.0
        return self.points * min(value, self.saturation) / self.saturation


HOLDERS: Final = Component(points=30.0, saturation=10_000.0)
TRANSACTIONS: Final = Component(points=25.0, saturation=1_000.0)
PRICE_GAIN: Final = Component(points=15.0, saturation=100.0)
LIQUIDITY: Final = Component(points=15.0, saturation=500_000.0)
INVERSE_RISK: Final = Component(points=10.0, saturation=100.0)
AGE_BONUS_POINTS: Final = 5.0
AGE_BONUS_MIN_DAYS: Final = 1.0

MIN_SCORE: Final = 0.0
MAX_SCORE: Final = 100.0


def community_score(market: CanonicalMarketFields, *, risk_score: float | None) -> float:
    total = (
        HOLDERS.score(market.holders)
        + TRANSACTIONS.score(market.tx_count_h24)
        + PRICE_GAIN.score(market.price_change_h24)
        + LIQUIDITY.score(market.liquidity_usd)
    )
    if market.age_days is not None and market.age_days >= AGE_BONUS_MIN_DAYS:
        total += AGE_BONUS_POINTS
    if risk_score is not None:
        total += INVERSE_RISK.score(100.0 - risk_score)
    return round(min(max(total, MIN_SCORE), MAX_SCORE), 2)
