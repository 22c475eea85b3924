"""Middleware configuration for the FastAPI application.

This module registers CORS, the correlation-id middleware and the
authorization middleware that turns a bearer token into an
:class:`~lovedev.domain.value_objects.identity.Identity`.
"""

import uuid
from typing import Optional
from uuid import UUID

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from structlog import get_logger

from lovedev.core.config.settings import settings
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.domain.value_objects.identity import Identity, LocalUser, ServicePrincipal

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "
CORRELATION_ID_HEADER = "X-Correlation-ID"


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Starlette wraps later registrations around earlier ones, so the request
    passes CORS, then correlation id, then authorization.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.middleware("http")(authorization_middleware)
    app.middleware("http")(correlation_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )


async def correlation_id_middleware(request: Request, call_next):
    """Bind a correlation id to the request and to every log line it produces.

    The caller's ``X-Correlation-ID`` is reused when present; otherwise a new
    one is generated. Either way it is echoed in the response.
    """
    correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")
    response.headers[CORRELATION_ID_HEADER] = correlation_id
    return response


def resolve_identity(authorization: Optional[str], codec: TokenCodec) -> Optional[Identity]:
    """Build the identity carried by an ``Authorization`` header value.

    Returns ``None`` when the header is absent, not a bearer credential, or
    carries a token that does not validate. Refresh token values are not
    accepted as bearer credentials.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):]
    if not codec.validate(token):
        return None
    if codec.is_service_token(token):
        return ServicePrincipal(service_name=codec.extract_subject(token))
    if codec.is_refresh_token(token):
        return None
    return LocalUser(
        user_id=UUID(codec.extract_subject(token)),
        authorities=frozenset(codec.extract_roles(token)),
    )


async def authorization_middleware(request: Request, call_next):
    """Attach the caller's identity, or ``None``, to ``request.state.identity``.

    This middleware never rejects a request. A missing or bad token simply
    leaves the request unauthenticated; the route guards decide whether that
    is acceptable.
    """
    request.state.identity = None
    try:
        request.state.identity = resolve_identity(
            request.headers.get("Authorization"), request.app.state.token_codec
        )
    except Exception as e:  # noqa: BLE001
        logger.warning(
            "Could not establish request identity",
            path=request.url.path,
            error_type=type(e).__name__,
        )
    if request.state.identity is not None:
        structlog.contextvars.bind_contextvars(principal=request.state.identity.principal)
    return await call_next(request)
