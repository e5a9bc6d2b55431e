"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Chain(StrEnum):
    SOLANA = "SOLANA"
    ETHEREUM = "ETHEREUM"
    BSC = "BSC"
    BASE = "BASE"
    SUI = "SUI"
    APTOS = "APTOS"
    NEAR = "NEAR"
    OSMOSIS = "OSMOSIS"
    OTHER = "OTHER"
    UNKNOWN = "UNKNOWN"


class ProviderId(StrEnum):
    """Upstream market-data feeds. DEXSCREENER is the primary aggregator."""

    DEXSCREENER = "dexscreener"
    BIRDEYE = "birdeye"
    MORALIS = "moralis"
    SOLSCAN = "solscan"


PRIMARY_PROVIDER = ProviderId.DEXSCREENER


class Category(StrEnum):
    MEME = "MEME"
    DEFI = "DEFI"
    NFT = "NFT"
    OTHER = "OTHER"
    UNKNOWN = "UNKNOWN"


class Tier(StrEnum):
    """Vetting outcome. ``NONE`` is a finalized result meaning no tier was earned."""

    STELLAR = "stellar"
    BLOOM = "bloom"
    SPROUT = "sprout"
    SEED = "seed"
    NONE = "none"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    INSUFFICIENT_DATA = "insufficient_data"


class ScoreOrigin(StrEnum):
    """Where a record's community score came from."""

    AUTOMATIC = "automatic"
    VOTES = "votes"


class VettingState(StrEnum):
    UNVETTED = "unvetted"
    VETTING_IN_FLIGHT = "vetting_in_flight"
    VETTED = "vetted"


class EventType(StrEnum):
    NEW = "new"
    UPDATE = "update"
