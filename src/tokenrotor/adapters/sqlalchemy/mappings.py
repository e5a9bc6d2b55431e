"""SQLAlchemy table metadata for canonical token records."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
)

from tokenrotor.domain.model import Category, Chain, RiskLevel, ScoreOrigin, Tier

NAMING_CONVENTION: Final[dict[str, str]] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_type(enum_cls: type[StrEnum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


token_record_table = Table(
    "token_record",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("chain", _enum_type(Chain, "chain"), nullable=False),
    Column("address", String(128), nullable=False),
    Column("symbol", String(64)),
    Column("name", String(256)),
    Column("category", _enum_type(Category, "category"), nullable=False),
    Column("price_usd", Float),
    Column("liquidity_usd", Float),
    Column("market_cap", Float),
    Column("volume_24h", Float),
    Column("price_change_m5", Float),
    Column("price_change_h1", Float),
    Column("price_change_h6", Float),
    Column("price_change_h24", Float),
    Column("tx_count_h1", Integer),
    Column("tx_count_h24", Integer),
    Column("holders", Integer),
    Column("logo_url", String(1024)),
    Column("age_days", Float),
    Column("risk_score", Float),
    Column("tier", _enum_type(Tier, "tier")),
    Column("risk_level", _enum_type(RiskLevel, "risk_level")),
    Column("component_scores", JSON, nullable=False, default=dict),
    Column("flags", JSON, nullable=False, default=list),
    Column("community_score", Float),
    Column("community_score_origin", _enum_type(ScoreOrigin, "score_origin")),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("last_scanned_at", UTCDateTime()),
    Column("vetting_in_flight", Boolean, nullable=False, default=False),
    Column("vetting_attempts", Integer, nullable=False, default=0),
    Column("last_vetting_attempt_at", UTCDateTime()),
    UniqueConstraint("chain", "address"),
    Index("ix_token_record_created_at", "created_at"),
    Index("ix_token_record_vetting", "tier", "vetting_in_flight"),
)

