"""
Database helpers for the pipeline.

Synchronous SQLAlchemy session management. The engine is created lazily so
importing modules never opens a connection; services receive a
``SessionScope`` so tests can substitute an in-memory database.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .logging import logger
from .models.tables import Base

SessionScope = Callable[[], AbstractContextManager[Session]]

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_engine(
            settings.database_url,
            echo=settings.sql_echo,
            future=True,
            pool_pre_ping=True,
        )
    return _engine


def _get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
            class_=Session,
        )
    return _SessionLocal


def make_session_scope(factory: sessionmaker[Session]) -> SessionScope:
    """Build a transactional scope: commit on success, rollback and re-raise on error."""

    @contextmanager
    def scope() -> Iterator[Session]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception as exc:
            session.rollback()
            logger.debug("db_session_rollback", error=str(exc), error_type=type(exc).__name__)
            raise
        finally:
            session.close()

    return scope


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional database session bound to the configured database.

    Usage:
        with get_session() as session:
            session.add(obj)
            # Commit happens automatically on exit
    """
    with make_session_scope(_get_session_factory())() as session:
        yield session


def init_db(engine: Engine | None = None) -> None:
    """Create the teams and games tables if they don't exist."""
    target = engine or get_engine()
    Base.metadata.create_all(target)
    logger.info("db_initialized", url=target.url.render_as_string(hide_password=True))


__all__ = ["SessionScope", "get_engine", "get_session", "init_db", "make_session_scope"]
