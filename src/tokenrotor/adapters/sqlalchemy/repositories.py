"""SQLAlchemy implementation of the token repository port."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, func, insert, or_, select, update

from tokenrotor.domain.model import (
    MARKET_FIELD_NAMES,
    CanonicalMarketFields,
    TokenKey,
    TokenRecord,
)
from tokenrotor.domain.ports import TokenFilter, TokenRepository

from .mappings import token_record_table

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement, CursorResult, RowMapping
    from sqlalchemy.orm import Session

_table = token_record_table
_c = token_record_table.c

# Keeps OR chains well below SQLite expression depth limits.
_DELETE_CHUNK = 100


def _key_clause(key: TokenKey) -> ColumnElement[bool]:
    return and_(_c.chain == key.chain, _c.address == key.address)


def record_to_row(record: TokenRecord) -> dict[str, Any]:
    row: dict[str, Any] = {
        "chain": record.key.chain,
        "address": record.key.address,
        "symbol": record.symbol,
        "name": record.name,
        "category": record.category,
        "risk_score": record.risk_score,
        "tier": record.tier,
        "risk_level": record.risk_level,
        "component_scores": dict(record.component_scores),
        "flags": list(record.flags),
        "community_score": record.community_score,
        "community_score_origin": record.community_score_origin,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "last_scanned_at": record.last_scanned_at,
        "vetting_in_flight": record.vetting_in_flight,
        "vetting_attempts": record.vetting_attempts,
        "last_vetting_attempt_at": record.last_vetting_attempt_at,
    }
    for name in MARKET_FIELD_NAMES:
        row[name] = getattr(record.market, name)
    return row


def row_to_record(row: RowMapping) -> TokenRecord:
    market = CanonicalMarketFields(**{name: row[name] for name in MARKET_FIELD_NAMES})
    return TokenRecord(
        key=TokenKey(chain=row["chain"], address=row["address"]),
        symbol=row["symbol"],
        name=row["name"],
        category=row["category"],
        market=market,
        risk_score=row["risk_score"],
        tier=row["tier"],
        risk_level=row["risk_level"],
        component_scores=dict(row["component_scores"] or {}),
        flags=tuple(row["flags"] or ()),
        community_score=row["community_score"],
        community_score_origin=row["community_score_origin"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_scanned_at=row["last_scanned_at"],
        vetting_in_flight=bool(row["vetting_in_flight"]),
        vetting_attempts=row["vetting_attempts"],
        last_vetting_attempt_at=row["last_vetting_attempt_at"],
    )


class SqlAlchemyTokenRepository(TokenRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert(self, record: TokenRecord) -> None:
        row = record_to_row(record)
        result: CursorResult[Any] = self.session.execute(  # type: ignore[assignment]
            update(_table).where(_key_clause(record.key)).values(**row)
        )
        if result.rowcount == 0:
            self.session.execute(insert(_table).values(**row))

    def find_one(self, key: TokenKey) -> TokenRecord | None:
        row = self.session.execute(select(_table).where(_key_clause(key))).mappings().first()
        return row_to_record(row) if row is not None else None

    def find_many(self, token_filter: TokenFilter | None = None) -> Sequence[TokenRecord]:
        criteria = token_filter or TokenFilter()
        stmt = select(_table)
        if criteria.chain is not None:
            stmt = stmt.where(_c.chain == criteria.chain)
        if criteria.unvetted is not None:
            stmt = stmt.where(_c.tier.is_(None) if criteria.unvetted else _c.tier.is_not(None))
        if criteria.in_flight is not None:
            stmt = stmt.where(_c.vetting_in_flight.is_(criteria.in_flight))
        if criteria.attempts_below is not None:
            stmt = stmt.where(_c.vetting_attempts < criteria.attempts_below)
        if criteria.claimed_before is not None:
            stmt = stmt.where(_c.last_vetting_attempt_at < criteria.claimed_before)
        stmt = stmt.order_by(_c.created_at.asc(), _c.id.asc())
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)
        return [row_to_record(row) for row in self.session.execute(stmt).mappings()]

    def delete_many(self, keys: Iterable[TokenKey]) -> int:
        clauses = [_key_clause(key) for key in keys]
        removed = 0
        for start in range(0, len(clauses), _DELETE_CHUNK):
            chunk = clauses[start : start + _DELETE_CHUNK]
            result: CursorResult[Any] = self.session.execute(  # type: ignore[assignment]
                delete(_table).where(or_(*chunk))
            )
            removed += result.rowcount
        return removed

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(_table)).scalar_one()

    def claim_for_vetting(self, key: TokenKey, *, now: datetime) -> bool:
        # Conditional update: only one concurrent caller can flip the flag.
        result: CursorResult[Any] = self.session.execute(  # type: ignore[assignment]
            update(_table)
            .where(
                _key_clause(key),
                _c.tier.is_(None),
                _c.vetting_in_flight.is_(False),
            )
            .values(vetting_in_flight=True, last_vetting_attempt_at=now)
        )
        return result.rowcount == 1

    def release_claim(self, key: TokenKey) -> bool:
        result: CursorResult[Any] = self.session.execute(  # type: ignore[assignment]
            update(_table)
            .where(_key_clause(key), _c.vetting_in_flight.is_(True))
            .values(vetting_in_flight=False)
        )
        return result.rowcount == 1
