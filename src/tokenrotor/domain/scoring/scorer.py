"""Annotate token records with category and automatic community score."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from tokenrotor.domain.model import ScoreOrigin

from .classify import classify_category
from .community import community_score

if TYPE_CHECKING:
    from tokenrotor.domain.model import TokenRecord


class Scorer:
    """Stateless annotator applied whenever a record's inputs change."""

    def annotate(self, record: TokenRecord) -> TokenRecord:
        category = classify_category(record.symbol, record.name, record.market)
        if record.has_vote_score:
            return replace(record, category=category)
        return replace(
            record,
            category=category,
            community_score=community_score(record.market, risk_score=record.risk_score),
            community_score_origin=ScoreOrigin.AUTOMATIC,
        )
