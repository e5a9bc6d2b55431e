"""Reconciliation of provider views into publishable candidates."""

from __future__ import annotations

from .contracts import DroppedCandidate, GateOutcome, ReconcileResult
from .gate import (
    NATIVE_SYMBOLS,
    OFFICIAL_NATIVE_ADDRESSES,
    PublicationPolicy,
    check_completeness,
    is_native_lookalike,
)
from .merge import Reconciler, group_by_key, merge_partials
from .precedence import DEFAULT_PRECEDENCE, PRECEDENCE_V1, PrecedenceTable

__all__ = [
    "DEFAULT_PRECEDENCE",
    "NATIVE_SYMBOLS",
    "OFFICIAL_NATIVE_ADDRESSES",
    "PRECEDENCE_V1",
    "DroppedCandidate",
    "GateOutcome",
    "PrecedenceTable",
    "PublicationPolicy",
    "ReconcileResult",
    "Reconciler",
    "check_completeness",
    "group_by_key",
    "is_native_lookalike",
    "merge_partials",
]
