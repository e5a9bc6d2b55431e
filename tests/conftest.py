from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from tokenrotor.adapters.sqlalchemy.migrations import upgrade_head
from tokenrotor.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyTokenUnitOfWork,
    create_database_engine,
    shutdown,
    startup,
)
from tests.support.tokens import FakeTokenStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TOKENROTOR_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TOKENROTOR_LOGO_LOOKUP", "off")
    for name in (
        "BIRDEYE_API_KEY",
        "MORALIS_API_KEY",
        "SOLSCAN_API_KEY",
        "VETTING_WEBHOOK_URL",
        "NOTIFIER_WEBHOOK_URL",
        "TOKENROTOR_PINNED",
        "TOKENROTOR_CAPACITY",
        "TOKENROTOR_MIN_AGE_DAYS",
        "TOKENROTOR_REFRESH_SECONDS",
        "TOKENROTOR_ROTATION_SECONDS",
        "TOKENROTOR_VETTING_MAX_ATTEMPTS",
        "DEXSCREENER_QUERIES",
        "TOKENROTOR_HTTP_CACHE",
        "TOKENROTOR_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyTokenUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyTokenUnitOfWork:
        return SqlAlchemyTokenUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def fake_store() -> FakeTokenStore:
    return FakeTokenStore()
