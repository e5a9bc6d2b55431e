"""Ports the domain core depends on; adapters provide the implementations."""

from __future__ import annotations

from .fetching import FeedAdapter, FeedUnavailableError, LogoResolver, TokenLookup
from .notifying import Notifier
from .persistence import TokenFilter, TokenRepository
from .unit_of_work import RepositoryCollection, TokenRepositories, TokenUnitOfWork, UnitOfWork
from .vetting import VettingCollaborator, VettingError, VettingResult

__all__ = [
    "FeedAdapter",
    "FeedUnavailableError",
    "LogoResolver",
    "Notifier",
    "RepositoryCollection",
    "TokenFilter",
    "TokenLookup",
    "TokenRepositories",
    "TokenRepository",
    "TokenUnitOfWork",
    "UnitOfWork",
    "VettingCollaborator",
    "VettingError",
    "VettingResult",
]
