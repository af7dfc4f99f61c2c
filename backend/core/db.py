"""
RMI Scheduler - Core database layer.

Provides the SQLAlchemy engine, session factory, declarative base,
and the FastAPI get_db dependency.

SQLite file databases use NullPool (one connection per session). The
in-memory URL ("sqlite://") shares a single connection through StaticPool,
otherwise every session would see a fresh, empty database.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from core.config import settings
from core.base import Base  # noqa: F401  Single Base instance shared across all models

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _make_engine(database_url: str):
    kwargs = {"echo": settings.debug}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool if database_url in _MEMORY_URLS else NullPool
    new_engine = create_engine(database_url, **kwargs)

    if database_url.startswith("sqlite") and database_url not in _MEMORY_URLS:
        @event.listens_for(new_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA journal_mode=WAL")
            cur.execute("PRAGMA busy_timeout=5000")
            cur.close()

    return new_engine


engine = _make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables for models imported so far.

    create_app() imports every module's models.py before calling this.
    """
    import core.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
