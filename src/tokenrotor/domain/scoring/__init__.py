"""Category classification and community scoring."""

from __future__ import annotations

from .classify import MEME_HINTS, classify_category
from .community import MAX_SCORE, MIN_SCORE, community_score
from .scorer import Scorer

__all__ = [
    "MAX_SCORE",
    "MEME_HINTS",
    "MIN_SCORE",
    "Scorer",
    "classify_category",
    "community_score",
]
