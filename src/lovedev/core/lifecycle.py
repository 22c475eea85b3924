"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring proper
initialization and cleanup of application resources.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lovedev.core.config.settings import settings
from lovedev.core.logging import logger
from lovedev.infrastructure.database.async_db import check_database_health, create_db_and_tables
from lovedev.infrastructure.database.seed import seed_system_roles
from lovedev.infrastructure.jobs.token_cleanup import run_token_cleanup


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: probe the database, optionally create and seed the schema,
        and start the refresh-token sweep. Shutdown: stop the sweep and release
        the event bus and the connection pool.

        Raises:
            RuntimeError: If database is unavailable during startup
        """
        # Startup
        if not await check_database_health(app.state.engine):
            logger.error("database_unavailable_on_startup")
            raise RuntimeError("Database unavailable")
        if settings.DB_AUTO_CREATE:
            await create_db_and_tables(app.state.engine)
            async with app.state.session_factory() as session:
                await seed_system_roles(session)

        cleanup_task = None
        if settings.TOKEN_CLEANUP_ENABLED:
            cleanup_task = asyncio.create_task(
                run_token_cleanup(
                    app.state.session_factory,
                    app.state.token_codec,
                    settings.TOKEN_CLEANUP_INTERVAL_HOURS * 3600,
                )
            )
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        yield

        # Shutdown
        if cleanup_task is not None:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task
        close = getattr(app.state.event_publisher, "close", None)
        if close is not None:
            await close()
        if app.state.owns_engine:
            await app.state.engine.dispose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
