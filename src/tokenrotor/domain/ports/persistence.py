"""Ports for persisting token records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from tokenrotor.domain.model import Chain, TokenKey, TokenRecord


@dataclass(slots=True, frozen=True, kw_only=True)
class TokenFilter:
    """Selection criteria for ``TokenRepository.find_many``.

    Unset criteria do not restrict. Results are ordered oldest ``created_at`` first.
    """

    chain: Chain | None = None
    unvetted: bool | None = None
    in_flight: bool | None = None
    attempts_below: int | None = None
    claimed_before: datetime | None = None
    limit: int | None = None


@runtime_checkable
class TokenRepository(Protocol):
    """Persistence contract for canonical token records."""

    def upsert(self, record: TokenRecord) -> None: ...

    def find_one(self, key: TokenKey) -> TokenRecord | None: ...

    def find_many(self, token_filter: TokenFilter | None = None) -> Sequence[TokenRecord]: ...

    def delete_many(self, keys: Iterable[TokenKey]) -> int: ...

    def count(self) -> int: ...

    def claim_for_vetting(self, key: TokenKey, *, now: datetime) -> bool:
        """Atomically mark an unvetted, unclaimed record as in flight.

        Returns ``True`` only for the caller that flipped the flag.
        """
        ...

    def release_claim(self, key: TokenKey) -> bool:
        """Clear the in-flight flag without recording an attempt."""
        ...


__all__ = ["TokenFilter", "TokenRepository"]
