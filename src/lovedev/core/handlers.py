from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

Every failure, whatever layer raised it, leaves the service in the same
envelope::

    {"success": false, "message": ..., "errorCode": ..., "status": ...,
     "timestamp": ..., "path": ..., "fieldErrors": [...]}

Domain errors carry their own safe message and code; anything unexpected is
logged in full and answered with a generic message.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from lovedev.core.exceptions import (
    AccountStateError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    LoveDevError,
    NotFoundError,
    PermissionDeniedError,
    TooSoonError,
    ValidationError,
)

__all__ = [
    "error_response",
    "authentication_error_handler",
    "access_denied_error_handler",
    "not_found_error_handler",
    "conflict_error_handler",
    "business_rule_error_handler",
    "validation_error_handler",
    "request_validation_error_handler",
    "too_soon_error_handler",
    "rate_limit_exception_handler",
    "http_exception_handler",
    "lovedev_error_handler",
    "database_error_handler",
    "unhandled_exception_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: str,
    field_errors: Optional[List[Dict[str, Any]]] = None,
) -> JSONResponse:
    """Build the error envelope shared by every handler."""
    content: Dict[str, Any] = {
        "success": False,
        "message": message,
        "errorCode": error_code,
        "status": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }
    if field_errors:
        content["fieldErrors"] = field_errors
    return JSONResponse(status_code=status_code, content=content)


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`.

    Covers bad credentials, unknown or expired one-time tokens, unusable
    refresh tokens and requests reaching a guarded route without an identity.
    """
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    response = error_response(request, status.HTTP_401_UNAUTHORIZED, exc.message, exc.code)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def access_denied_error_handler(request: Request, exc: LoveDevError) -> JSONResponse:
    """Handles `PermissionDeniedError` and `AccountStateError` with a `403 Forbidden`."""
    logger.warning(
        "Access denied",
        error=exc.code,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    return error_response(request, status.HTTP_403_FORBIDDEN, exc.message, exc.code)


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(request, status.HTTP_404_NOT_FOUND, exc.message, exc.code)


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return error_response(request, status.HTTP_409_CONFLICT, exc.message, exc.code)


async def business_rule_error_handler(request: Request, exc: BusinessRuleError) -> JSONResponse:
    return error_response(request, status.HTTP_400_BAD_REQUEST, exc.message, exc.code)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles domain `ValidationError` (e.g. password policy) with field details."""
    field_errors = [
        {"field": error.field, "message": error.message, "rejectedValue": error.rejected_value}
        for error in exc.field_errors
    ]
    return error_response(
        request, status.HTTP_400_BAD_REQUEST, exc.message, exc.code, field_errors
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handles malformed request bodies and parameters with a `400 Bad Request`.

    Rejected values are echoed back except for fields that look like secrets.
    """
    field_errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        secret = any(word in field.lower() for word in ("password", "token"))
        field_errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "rejectedValue": None if secret else _jsonable(error.get("input")),
            }
        )
    return error_response(
        request, status.HTTP_400_BAD_REQUEST, "Validation failed", "validation_error", field_errors
    )


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


async def too_soon_error_handler(request: Request, exc: TooSoonError) -> JSONResponse:
    return error_response(request, status.HTTP_429_TOO_MANY_REQUESTS, exc.message, exc.code)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handles exceptions raised by slowapi when a rate limit is exceeded."""
    logger.warning(
        "rate_limit_exceeded",
        client_ip=_client_ip(request),
        path=request.url.path,
        limit=str(exc.detail),
    )
    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests, please try again later",
        "rate_limit_exceeded",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps framework errors (unknown route, wrong method) in the same envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = error_response(request, exc.status_code, message, f"http_{exc.status_code}")
    for name, value in (exc.headers or {}).items():
        response.headers[name] = value
    return response


async def lovedev_error_handler(request: Request, exc: LoveDevError) -> JSONResponse:
    """Handles the base `LoveDevError`, returning a `500 Internal Server Error`.

    This serves as a fallback for application errors without a more specific
    handler, such as `ConfigurationError` and `EventPublishError`.
    """
    logger.error(
        "An unhandled application error occurred",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE, exc.code
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handles low-level database exceptions without exposing their details."""
    logger.critical(
        "A critical database error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE, "database_error"
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", path=request.url.path, error_type=type(exc).__name__)
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE, "internal_error"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all exception handlers with the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so each family
    handler also covers its subclasses and `LoveDevError` only catches what
    no family claims.
    """
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionDeniedError, access_denied_error_handler)
    app.add_exception_handler(AccountStateError, access_denied_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(BusinessRuleError, business_rule_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(TooSoonError, too_soon_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(LoveDevError, lovedev_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
