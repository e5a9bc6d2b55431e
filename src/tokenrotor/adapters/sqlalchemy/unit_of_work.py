"""Engine lifecycle and the SQLAlchemy unit of work for token records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tokenrotor.config import get_database_config
from tokenrotor.domain.ports import TokenRepositories

from .migrations import upgrade_head
from .repositories import SqlAlchemyTokenRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the database is used before ``startup()`` or a session is reused."""


# One engine per process; ``startup`` replaces it, ``shutdown`` disposes it.
_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def create_database_engine(database_uri: str) -> Engine:
    """Build an engine; in-memory SQLite shares one connection across sessions."""

    if database_uri.startswith("sqlite") and ":memory:" in database_uri:
        return create_engine(
            database_uri,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_uri, future=True)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bring the token table up to the latest migration and bind new sessions to it."""

    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None and not force:
        raise StartupError("Database already started; pass force=True to rebind it")

    resolved = engine or create_database_engine(database_uri or get_database_config().uri)
    upgrade_head(engine=resolved)
    _engine = resolved
    _sessions = sessionmaker(bind=resolved, expire_on_commit=False)


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


class SqlAlchemyTokenUnitOfWork:
    """One session per ``with`` block; leaving the block without ``commit`` discards writes."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        factory = session_factory or _sessions
        if factory is None:
            raise StartupError("Call startup() before opening a token unit of work")
        self._factory = factory
        self._session: Session | None = None
        self._repositories: TokenRepositories | None = None

    def __enter__(self) -> SqlAlchemyTokenUnitOfWork:
        if self._session is not None:
            raise StartupError("Token unit of work is already open")
        self._session = self._factory()
        self._repositories = TokenRepositories(tokens=SqlAlchemyTokenRepository(self._session))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._repositories = None
        return False

    @property
    def repositories(self) -> TokenRepositories:
        if self._repositories is None:
            raise StartupError("Token unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self._open_session().commit()

    def rollback(self) -> None:
        self._open_session().rollback()

    def _open_session(self) -> Session:
        if self._session is None:
            raise StartupError("Token unit of work is not open")
        return self._session
