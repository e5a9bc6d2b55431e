"""Canonical token records owned by the rotation core."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Final

from .enums import Category, ScoreOrigin, VettingState
from .market import CanonicalMarketFields, TokenKey

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .enums import ProviderId, RiskLevel, Tier


@dataclass(slots=True, frozen=True, kw_only=True)
class Candidate:
    """Merged, not yet persisted view of one token across all providers of a cycle."""

    key: TokenKey
    symbol: str | None
    name: str | None
    market: CanonicalMarketFields
    field_sources: Mapping[str, ProviderId]
    providers: tuple[ProviderId, ...]


@dataclass(slots=True, frozen=True, kw_only=True)
class TokenRecord:
    key: TokenKey
    symbol: str | None = None
    name: str | None = None
    category: Category = Category.UNKNOWN
    market: CanonicalMarketFields = CanonicalMarketFields()

    risk_score: float | None = None
    tier: Tier | None = None
    risk_level: RiskLevel | None = None
    component_scores: Mapping[str, float] = field(default_factory=dict)
    flags: tuple[str, ...] = ()

    community_score: float | None = None
    community_score_origin: ScoreOrigin | None = None

    created_at: datetime
    updated_at: datetime
    last_scanned_at: datetime | None = None

    vetting_in_flight: bool = False
    vetting_attempts: int = 0
    last_vetting_attempt_at: datetime | None = None

    @property
    def vetting_state(self) -> VettingState:
        if self.vetting_in_flight:
            return VettingState.VETTING_IN_FLIGHT
        if self.tier is not None:
            return VettingState.VETTED
        return VettingState.UNVETTED

    @property
    def has_vote_score(self) -> bool:
        return self.community_score_origin is ScoreOrigin.VOTES

    def content_differs(self, other: TokenRecord) -> bool:
        """Whether any field other than bookkeeping timestamps differs."""

        return any(
            getattr(self, name) != getattr(other, name)
            for name in _CONTENT_FIELDS
        )


_IGNORED_FOR_CHANGES: Final[frozenset[str]] = frozenset({"updated_at"})
_CONTENT_FIELDS: Final[tuple[str, ...]] = tuple(
    f.name for f in fields(TokenRecord) if f.name not in _IGNORED_FOR_CHANGES
)


@dataclass(slots=True, frozen=True, kw_only=True)
class Delta:
    """Per-cycle change set handed to the notifier."""

    new: tuple[TokenRecord, ...] = ()
    updated: tuple[TokenRecord, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.new and not self.updated
