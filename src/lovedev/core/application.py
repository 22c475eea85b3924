"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with all necessary middleware, exception handlers, and routers registered.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lovedev.adapters.api.v1 import api_router
from lovedev.core.config.settings import settings
from lovedev.core.handlers import register_exception_handlers
from lovedev.core.lifecycle import create_lifespan_manager
from lovedev.core.middleware import configure_middleware
from lovedev.core.ratelimiter import limiter
from lovedev.domain.interfaces.services import IEventPublisher
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.infrastructure.database.async_db import build_engine, build_session_factory
from lovedev.infrastructure.messaging.event_publisher import build_event_publisher


def create_application(
    engine: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    event_publisher: Optional[IEventPublisher] = None,
    token_codec: Optional[TokenCodec] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators not passed in are built from settings. The token codec is
    constructed here, so a missing or short ``JWT_SECRET`` stops the process
    before it serves a single request.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Authentication and role-based access control for LoveDev.",
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )

    app.state.owns_engine = engine is None
    app.state.engine = engine or build_engine()
    app.state.session_factory = session_factory or build_session_factory(app.state.engine)
    app.state.event_publisher = event_publisher or build_event_publisher()
    app.state.token_codec = token_codec or TokenCodec()
    app.state.limiter = limiter

    # Configure middleware
    configure_middleware(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    return app
