from __future__ import annotations

"""
Asynchronous Database Utilities Module

This module builds the SQLAlchemy asyncio engine and session factory used by
every request and background job, and exposes the FastAPI dependency that
yields a session per request.

**Security Note**: Ensure that DATABASE_URL points at a TLS-enabled server when
connecting over untrusted networks. Connection details are never logged.

Key Components:
    - build_engine: Creates an AsyncEngine with pool limits and a statement timeout.
    - build_session_factory: Creates the ``async_sessionmaker`` bound to an engine.
    - get_db: FastAPI dependency yielding an ``AsyncSession`` from the app's factory.
    - check_database_health: Startup probe retried with exponential backoff.
    - create_db_and_tables: Creates the schema (tests and ``DB_AUTO_CREATE``).
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lovedev.core.config.settings import settings

# Registers every table on SQLModel.metadata
import lovedev.domain.entities  # noqa: F401

logger = get_logger(__name__)


def build_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Build the asynchronous engine for ``database_url``.

    PostgreSQL connections get pool limits and an asyncpg ``command_timeout``
    so that every statement is bounded. SQLite (used by the test suite) gets a
    single shared connection so an in-memory database survives across sessions.

    Returns:
        AsyncEngine: The configured engine.
    """
    url = make_url(database_url or settings.DATABASE_URL)
    echo = settings.DEBUG if echo is None else echo

    if url.get_backend_name() == "sqlite":
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_pre_ping=True,
        connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS},
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    The session comes from the factory stored on ``app.state`` by the
    application factory. Any exception raised while the session is in use
    rolls back the open transaction before propagating.

    Yields:
        AsyncSession: An asynchronous database session for the request.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except Exception:  # noqa: BLE001
            await session.rollback()
            logger.warning("Database session rolled back due to error")
            raise


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
async def _ping(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def check_database_health(engine: AsyncEngine) -> bool:
    """
    Performs a health check on the database connection.

    Connection failures are retried with exponential backoff before the
    database is reported unavailable.

    Returns:
        bool: True if the database answered, False otherwise
    """
    try:
        await _ping(engine)
        return True
    except Exception as e:  # noqa: BLE001
        logger.error("database_health_check_failed", error=str(e))
        return False


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """Create every table registered on the SQLModel metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("database_tables_created")
