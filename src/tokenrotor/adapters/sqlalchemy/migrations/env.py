"""Alembic entry point for the token table migrations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from tokenrotor.adapters.sqlalchemy.mappings import metadata
from tokenrotor.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

# Batch mode lets ALTER TABLE migrations run on SQLite.
_OPTIONS = {"target_metadata": metadata, "render_as_batch": True, "compare_type": True}


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def _database_url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


if context.is_offline_mode():
    context.configure(url=_database_url(), literal_binds=True, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()
elif (shared := context.config.attributes.get("connection")) is not None:
    # upgrade_head(engine=...) hands over a connection inside its own transaction.
    _migrate(shared)
else:
    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()
