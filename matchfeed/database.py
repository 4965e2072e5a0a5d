"""
MatchFeed: Async Database Engine & Session Factory

Two connection strategies share one pool configuration:

1. **Cloud Run (production)** – ``cloud-sql-python-connector`` with IAM
   authentication, used when ``CLOUD_SQL_USE_UNIX_SOCKET`` is *True* and
   ``CLOUD_SQL_INSTANCE_CONNECTION`` is set.

2. **Local development** – a plain ``asyncpg`` URL from ``DATABASE_URL``.

The discovery feed only reads, but the same ``get_db`` dependency also
serves the saved-filter endpoints, so sessions commit on success.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from matchfeed.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Shared declarative base for every MatchFeed table."""
    pass


# ------------------------------------------------------------------ #
# Pool configuration (shared across both connection strategies)
# ------------------------------------------------------------------ #

_POOL_KWARGS = {
    "pool_size": 10,
    "max_overflow": 10,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def _build_cloud_sql_engine():
    """Connect through the Cloud SQL Python Connector.

    Only the instance connection name (``project:region:instance``) is
    needed; the connector owns the TLS tunnel.
    """
    from google.cloud.sql.connector import Connector

    settings = get_settings()
    connector = Connector()

    async def _get_connection():
        return await connector.connect_async(
            settings.CLOUD_SQL_INSTANCE_CONNECTION,
            "asyncpg",
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            db=settings.DB_NAME,
            enable_iam_auth=True,
        )

    engine = create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_get_connection,
        echo=(settings.LOG_LEVEL == "DEBUG"),
        **_POOL_KWARGS,
    )

    logger.info(
        "Database engine created via Cloud SQL Connector (%s)",
        settings.CLOUD_SQL_INSTANCE_CONNECTION,
    )
    return engine


def _build_local_engine():
    """Create an engine from ``DATABASE_URL``.

    A bare ``postgresql://`` scheme is upgraded to the asyncpg dialect.
    """
    settings = get_settings()
    url = settings.DATABASE_URL

    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(
        url,
        echo=(settings.LOG_LEVEL == "DEBUG"),
        **_POOL_KWARGS,
    )

    logger.info("Database engine created from DATABASE_URL (local / dev)")
    return engine


def _create_engine():
    settings = get_settings()

    use_cloud_sql = (
        settings.CLOUD_SQL_USE_UNIX_SOCKET
        and settings.CLOUD_SQL_INSTANCE_CONNECTION
    )

    if use_cloud_sql:
        return _build_cloud_sql_engine()

    return _build_local_engine()


engine = _create_engine()

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ------------------------------------------------------------------ #
# FastAPI dependencies
# ------------------------------------------------------------------ #

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an ``AsyncSession``; commit on success, roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Expose the factory so the discovery pipeline can fan out its
    independent reads onto separate sessions."""
    return async_session_factory
