"""Ports for fetching market data from upstream feeds."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tokenrotor.domain.model import ProviderId, RawProviderRecord, TokenKey


class FeedUnavailableError(RuntimeError):
    """Raised by a feed when the provider cannot be reached or answered garbage."""

    def __init__(self, provider: ProviderId, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


@runtime_checkable
class FeedAdapter(Protocol):
    """One upstream provider.

    ``fetch`` returns ``None`` when the provider is temporarily unavailable; that is
    not an error for the cycle.
    """

    @property
    def provider(self) -> ProviderId: ...

    async def fetch(self) -> Sequence[RawProviderRecord] | None: ...


@runtime_checkable
class TokenLookup(Protocol):
    """A provider that can answer for specific tokens instead of a discovery query."""

    @property
    def provider(self) -> ProviderId: ...

    async def lookup(self, keys: Sequence[TokenKey]) -> Sequence[RawProviderRecord] | None: ...


class LogoResolver(Protocol):
    """Finds a hosted image for a token whose feeds carried none."""

    async def resolve(self, key: TokenKey) -> str | None: ...


__all__ = ["FeedAdapter", "FeedUnavailableError", "LogoResolver", "TokenLookup"]
