"""
Async SQLAlchemy wiring: engine, declarative base and session dependencies.
"""

from sqlalchemy import JSON, event
from sqlalchemy.engine import make_url
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from plantpro.api.config import settings

# Opaque structured payloads (health signal, metrics, soil data). Python None
# is stored as SQL NULL so "has payload" is a plain IS NOT NULL check.
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

Base = declarative_base()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for the given URL

    Server databases get a pool sized from settings unless a pool class is
    passed in. SQLite connections get case-sensitive LIKE (to match
    PostgreSQL) and foreign key enforcement.
    """
    kwargs.setdefault("echo", settings.SQLALCHEMY_ECHO)

    if make_url(url).get_backend_name() != "sqlite" and "poolclass" not in kwargs:
        kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
        kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)
        kwargs.setdefault("pool_timeout", settings.DB_POOL_TIMEOUT)
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA case_sensitive_like = ON")
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Session factory dependency

    Analytics services open one session per independent query so those
    queries can run concurrently.
    """
    return AsyncSessionLocal
