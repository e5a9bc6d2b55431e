"""Create the token_record table.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from tokenrotor.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_ENUM_LENGTH = 32


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=_ENUM_LENGTH)


def upgrade() -> None:
    op.create_table(
        "token_record",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "chain",
            _enum(
                "chain",
                "SOLANA",
                "ETHEREUM",
                "BSC",
                "BASE",
                "SUI",
                "APTOS",
                "NEAR",
                "OSMOSIS",
                "OTHER",
                "UNKNOWN",
            ),
            nullable=False,
        ),
        sa.Column("address", sa.String(length=128), nullable=False),
        sa.Column("symbol", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=256), nullable=True),
        sa.Column(
            "category",
            _enum("category", "MEME", "DEFI", "NFT", "OTHER", "UNKNOWN"),
            nullable=False,
        ),
        sa.Column("price_usd", sa.Float(), nullable=True),
        sa.Column("liquidity_usd", sa.Float(), nullable=True),
        sa.Column("market_cap", sa.Float(), nullable=True),
        sa.Column("volume_24h", sa.Float(), nullable=True),
        sa.Column("price_change_m5", sa.Float(), nullable=True),
        sa.Column("price_change_h1", sa.Float(), nullable=True),
        sa.Column("price_change_h6", sa.Float(), nullable=True),
        sa.Column("price_change_h24", sa.Float(), nullable=True),
        sa.Column("tx_count_h1", sa.Integer(), nullable=True),
        sa.Column("tx_count_h24", sa.Integer(), nullable=True),
        sa.Column("holders", sa.Integer(), nullable=True),
        sa.Column("logo_url", sa.String(length=1024), nullable=True),
        sa.Column("age_days", sa.Float(), nullable=True),
        sa.Column("risk_score", sa.Float(), nullable=True),
        sa.Column(
            "tier",
            _enum("tier", "stellar", "bloom", "sprout", "seed", "none"),
            nullable=True,
        ),
        sa.Column(
            "risk_level",
            _enum("risk_level", "low", "medium", "high", "insufficient_data"),
            nullable=True,
        ),
        sa.Column("component_scores", sa.JSON(), nullable=False),
        sa.Column("flags", sa.JSON(), nullable=False),
        sa.Column("community_score", sa.Float(), nullable=True),
        sa.Column(
            "community_score_origin",
            _enum("score_origin", "automatic", "votes"),
            nullable=True,
        ),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column("last_scanned_at", UTCDateTime(), nullable=True),
        sa.Column("vetting_in_flight", sa.Boolean(), nullable=False),
        sa.Column("vetting_attempts", sa.Integer(), nullable=False),
        sa.Column("last_vetting_attempt_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_token_record")),
        sa.UniqueConstraint("chain", "address", name=op.f("uq_token_record_chain")),
    )
    op.create_index("ix_token_record_created_at", "token_record", ["created_at"])
    op.create_index("ix_token_record_vetting", "token_record", ["tier", "vetting_in_flight"])


def downgrade() -> None:
    op.drop_index("ix_token_record_vetting", table_name="token_record")
    op.drop_index("ix_token_record_created_at", table_name="token_record")
    op.drop_table("token_record")
