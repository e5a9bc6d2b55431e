"""SQLAlchemy adapter package for tokenrotor."""

from __future__ import annotations

from .mappings import metadata, token_record_table
from .repositories import SqlAlchemyTokenRepository
from .unit_of_work import (
    SqlAlchemyTokenUnitOfWork,
    StartupError,
    create_database_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyTokenRepository",
    "SqlAlchemyTokenUnitOfWork",
    "StartupError",
    "create_database_engine",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "token_record_table",
]
