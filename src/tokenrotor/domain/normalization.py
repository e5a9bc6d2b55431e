"""Project provider records onto the canonical market model.

Each provider contributes one projection function that reads its own typed payload.
The ``Normalizer`` dispatches on the record's provider tag, validates the resulting
address for its chain family and never lets a single malformed record escape as an
exception.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import Chain

if TYPE_CHECKING:
    from tokenrotor.domain.model import PartialTokenRecord, ProviderId, RawProviderRecord

log = getLogger(__name__)

type Projection = Callable[[RawProviderRecord], PartialTokenRecord | None]

_SOLANA_MINT: Final = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
_EVM_ADDRESS: Final = re.compile(r"^0x[0-9a-fA-F]{40}$")
_EVM_CHAINS: Final = frozenset({Chain.ETHEREUM, Chain.BSC, Chain.BASE})

# Ordered: the first matching fragment wins.
_CHAIN_FRAGMENTS: Final[tuple[tuple[str, Chain], ...]] = (
    ("solana", Chain.SOLANA),
    ("ethereum", Chain.ETHEREUM),
    ("bsc", Chain.BSC),
    ("binance", Chain.BSC),
    ("base", Chain.BASE),
    ("sui", Chain.SUI),
    ("aptos", Chain.APTOS),
    ("near", Chain.NEAR),
    ("osmosis", Chain.OSMOSIS),
)
_CHAIN_ALIASES: Final[Mapping[str, Chain]] = {"sol": Chain.SOLANA, "eth": Chain.ETHEREUM}


def is_solana_mint(address: str | None) -> bool:
    """Base58 shaped, 32 to 44 characters, never an EVM or path-like string."""

    if not address:
        return False
    if address.startswith("0x") or any(char in address for char in "/.:"):
        return False
    return _SOLANA_MINT.match(address) is not None


def is_evm_address(address: str | None) -> bool:
    return bool(address) and _EVM_ADDRESS.match(address or "") is not None


def is_valid_address(chain: Chain, address: str | None) -> bool:
    """Chain-specific address check used to reject foreign-chain collisions."""

    if not address or address != address.strip() or any(char.isspace() for char in address):
        return False
    if chain is Chain.SOLANA:
        return is_solana_mint(address)
    if chain in _EVM_CHAINS:
        return is_evm_address(address)
    return True


def map_chain_id(value: str | None) -> Chain:
    """Map a provider's free-form chain id onto ``Chain``."""

    if value is None or not value.strip():
        return Chain.UNKNOWN
    lowered = value.strip().lower()
    alias = _CHAIN_ALIASES.get(lowered)
    if alias is not None:
        return alias
    for fragment, chain in _CHAIN_FRAGMENTS:
        if fragment in lowered:
            return chain
    return Chain.OTHER


def to_float(value: object) -> float | None:
    """Coerce a provider number. Missing, blank and non-finite values become ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_int(value: object) -> int | None:
    number = to_float(value)
    return int(number) if number is not None else None


def sum_counts(*values: int | None) -> int | None:
    """Add counts, returning ``None`` only when every part is unknown."""

    known = [value for value in values if value is not None]
    return sum(known) if known else None


class RejectReason(StrEnum):
    INVALID_ADDRESS = "invalid_address"
    MALFORMED = "malformed"
    UNATTRIBUTED = "unattributed"
    UNSUPPORTED_PROVIDER = "unsupported_provider"


@dataclass(slots=True)
class Normalizer:
    """Dispatch raw records to their provider projection."""

    projections: Mapping[ProviderId, Projection]
    rejected: Counter[str] = field(default_factory=Counter)

    def normalize(self, record: RawProviderRecord) -> PartialTokenRecord | None:
        projection = self.projections.get(record.provider)
        if projection is None:
            self._reject(RejectReason.UNSUPPORTED_PROVIDER)
            return None
        try:
            partial = projection(record)
        except (ValueError, TypeError) as exc:
            log.warning(
                "Dropping malformed %s record %s: %s", record.provider, record.address, exc
            )
            self._reject(RejectReason.MALFORMED)
            return None
        if partial is None:
            self._reject(RejectReason.UNATTRIBUTED)
            return None
        if not is_valid_address(partial.key.chain, partial.key.address):
            log.debug(
                "Rejecting %s address %r for chain %s",
                record.provider,
                partial.key.address,
                partial.key.chain,
            )
            self._reject(RejectReason.INVALID_ADDRESS)
            return None
        return partial

    def normalize_all(self, records: list[RawProviderRecord]) -> list[PartialTokenRecord]:
        partials: list[PartialTokenRecord] = []
        for record in records:
            partial = self.normalize(record)
            if partial is not None:
                partials.append(partial)
        return partials

    def reset(self) -> None:
        self.rejected.clear()

    def _reject(self, reason: RejectReason) -> None:
        self.rejected[reason] += 1
