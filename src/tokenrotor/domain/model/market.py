"""Market snapshot value objects shared by providers, reconciliation and storage."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import Chain, ProviderId

PLACEHOLDER_LOGO_PREFIX: Final[str] = "https://api.dicebear.com/7.x/identicon/svg?seed="


def placeholder_logo_url(address: str) -> str:
    """Return the generated identicon used when no provider supplies an image."""

    return f"{PLACEHOLDER_LOGO_PREFIX}{address}"


def is_placeholder_logo(url: str | None) -> bool:
    return url is not None and url.startswith(PLACEHOLDER_LOGO_PREFIX)


@dataclass(slots=True, frozen=True, kw_only=True)
class TokenKey:
    """Identity of a token: one canonical record exists per ``(chain, address)``."""

    chain: Chain
    address: str

    def __str__(self) -> str:
        return f"{self.chain}:{self.address}"


@dataclass(slots=True, frozen=True, kw_only=True)
class CanonicalMarketFields:
    """Provider-independent market snapshot.

    ``None`` always means "not known"; zero is a measured value.
    """

    price_usd: float | None = None
    liquidity_usd: float | None = None
    market_cap: float | None = None
    volume_24h: float | None = None
    price_change_m5: float | None = None
    price_change_h1: float | None = None
    price_change_h6: float | None = None
    price_change_h24: float | None = None
    tx_count_h1: int | None = None
    tx_count_h24: int | None = None
    holders: int | None = None
    logo_url: str | None = None
    age_days: float | None = None

    def present_fields(self) -> dict[str, object]:
        """Return the fields that carry a value."""

        return {
            name: value
            for name in MARKET_FIELD_NAMES
            if (value := getattr(self, name)) is not None
        }

    def overlay(self, incoming: CanonicalMarketFields) -> CanonicalMarketFields:
        """Return a copy where every non-null incoming field replaces the current one.

        Known values never regress to ``None`` and a generated placeholder logo does not
        replace a real image.
        """

        updates = incoming.present_fields()
        logo = updates.get("logo_url")
        if isinstance(logo, str) and is_placeholder_logo(logo) and self.logo_url is not None:
            del updates["logo_url"]
        if not updates:
            return self
        return replace(self, **updates)


MARKET_FIELD_NAMES: Final[tuple[str, ...]] = tuple(
    field.name for field in fields(CanonicalMarketFields)
)


@dataclass(slots=True, frozen=True, kw_only=True)
class RawProviderRecord:
    """One item as delivered by a feed, before normalization.

    ``payload`` is the provider's own typed model; only that provider's projection
    knows how to read it.
    """

    provider: ProviderId
    address: str | None
    chain_hint: str | None
    received_at: datetime
    payload: object


@dataclass(slots=True, frozen=True, kw_only=True)
class PartialTokenRecord:
    """A single provider's view of one token after normalization."""

    key: TokenKey
    provider: ProviderId
    received_at: datetime
    symbol: str | None = None
    name: str | None = None
    market: CanonicalMarketFields = CanonicalMarketFields()
