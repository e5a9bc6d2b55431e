"""Domain model for canonical token listings."""

from __future__ import annotations

from .enums import (
    PRIMARY_PROVIDER,
    Category,
    Chain,
    EventType,
    ProviderId,
    RiskLevel,
    ScoreOrigin,
    Tier,
    VettingState,
)
from .market import (
    MARKET_FIELD_NAMES,
    PLACEHOLDER_LOGO_PREFIX,
    CanonicalMarketFields,
    PartialTokenRecord,
    RawProviderRecord,
    TokenKey,
    is_placeholder_logo,
    placeholder_logo_url,
)
from .token import Candidate, Delta, TokenRecord

__all__ = [
    "MARKET_FIELD_NAMES",
    "PLACEHOLDER_LOGO_PREFIX",
    "PRIMARY_PROVIDER",
    "Candidate",
    "CanonicalMarketFields",
    "Category",
    "Chain",
    "Delta",
    "EventType",
    "PartialTokenRecord",
    "ProviderId",
    "RawProviderRecord",
    "RiskLevel",
    "ScoreOrigin",
    "Tier",
    "TokenKey",
    "TokenRecord",
    "VettingState",
    "is_placeholder_logo",
    "placeholder_logo_url",
]
