"""Field precedence between providers.

The table is a versioned contract: change the ranking by publishing a new version,
not by editing an existing one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import MARKET_FIELD_NAMES, ProviderId, is_placeholder_logo

if TYPE_CHECKING:
    from collections.abc import Mapping

IDENTITY_FIELD_NAMES: Final[tuple[str, ...]] = ("symbol", "name")
MERGED_FIELD_NAMES: Final[tuple[str, ...]] = IDENTITY_FIELD_NAMES + MARKET_FIELD_NAMES

_DEX: Final = ProviderId.DEXSCREENER
_BIRD: Final = ProviderId.BIRDEYE
_MORALIS: Final = ProviderId.MORALIS
_SOLSCAN: Final = ProviderId.SOLSCAN


@dataclass(slots=True, frozen=True)
class PrecedenceTable:
    """Ranked providers per field, best first.

    A provider missing from a field's ranking may only fill that field when it is empty.
    """

    version: str
    ranks: Mapping[str, tuple[ProviderId, ...]]

    def __post_init__(self) -> None:
        unknown = set(self.ranks) - set(MERGED_FIELD_NAMES)
        if unknown:
            raise ValueError(f"Unknown fields in precedence table: {sorted(unknown)}")

    def rank(self, field_name: str, provider: ProviderId) -> int | None:
        ranking = self.ranks.get(field_name, ())
        try:
            return ranking.index(provider)
        except ValueError:
            return None

    def accepts(
        self,
        field_name: str,
        *,
        incoming: ProviderId,
        incoming_value: object,
        current: ProviderId | None,
        current_value: object,
    ) -> bool:
        """Whether ``incoming_value`` from ``incoming`` replaces the current value."""

        if incoming_value is None:
            return False
        if current_value is None or current is None:
            return True
        if field_name == "logo_url":
            incoming_placeholder = is_placeholder_logo(str(incoming_value))
            current_placeholder = is_placeholder_logo(str(current_value))
            if incoming_placeholder != current_placeholder:
                return current_placeholder
        incoming_rank = self.rank(field_name, incoming)
        if incoming_rank is None:
            return False
        current_rank = self.rank(field_name, current)
        if current_rank is None:
            return True
        return incoming_rank <= current_rank


_PRICE_CHANGE_RANK: Final = (_DEX, _BIRD, _SOLSCAN)

PRECEDENCE_V1: Final = PrecedenceTable(
    version="1",
    ranks={
        "symbol": (_DEX, _BIRD, _MORALIS, _SOLSCAN),
        "name": (_DEX, _BIRD, _MORALIS, _SOLSCAN),
        "price_usd": (_DEX, _BIRD, _MORALIS, _SOLSCAN),
        "liquidity_usd": (_DEX, _BIRD, _MORALIS),
        "market_cap": (_DEX, _MORALIS, _SOLSCAN, _BIRD),
        "volume_24h": (_DEX, _BIRD, _MORALIS),
        "price_change_m5": _PRICE_CHANGE_RANK,
        "price_change_h1": _PRICE_CHANGE_RANK,
        "price_change_h6": _PRICE_CHANGE_RANK,
        "price_change_h24": _PRICE_CHANGE_RANK,
        "tx_count_h1": (_DEX,),
        "tx_count_h24": (_DEX,),
        "holders": (_MORALIS, _SOLSCAN, _BIRD),
        "logo_url": (_DEX, _BIRD, _MORALIS, _SOLSCAN),
        "age_days": (_DEX, _SOLSCAN, _BIRD),
    },
)

DEFAULT_PRECEDENCE: Final = PRECEDENCE_V1
