import os
import ssl
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

_session_factory: async_sessionmaker[AsyncSession] | None = None


def _build_ssl_connect_args() -> dict[str, Any]:
    """Return asyncpg ``connect_args`` for SSL when DATABASE_SSL is set."""
    mode = os.environ.get("DATABASE_SSL", "").lower()
    if not mode or mode == "disable":
        return {}

    cert_path = os.environ.get("RDS_SSL_CERT", "")
    if cert_path and Path(cert_path).exists():
        ctx = ssl.create_default_context(cafile=cert_path)
        return {"connect_args": {"ssl": ctx}}

    # Fall back to simple 'require' (encrypted, no cert verification)
    return {"connect_args": {"ssl": "require"}}


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on pysqlite/aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_async_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        # Local/dev databases: no pool sizing, no SSL
        engine = create_async_engine(database_url, **kwargs)
        _enable_sqlite_savepoints(engine)
        return engine
    merged = {**_build_ssl_connect_args(), **kwargs}
    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        **merged,
    )


def get_async_session_factory(
    engine: AsyncEngine,
    *,
    expire_on_commit: bool = False,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
        autocommit=False,
    )


def init_db(database_url: str, *, echo: bool = False) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    # Import all models so Base.metadata is populated for create_all() and Alembic.
    import progress_engine.models  # noqa: F401

    engine = get_async_engine(database_url, echo=echo)
    _session_factory = get_async_session_factory(engine)
    return _session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized")
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
