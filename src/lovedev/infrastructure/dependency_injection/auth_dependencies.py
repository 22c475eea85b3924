"""FastAPI dependency providers for the authentication and RBAC services.

Long-lived collaborators (token codec, event publisher, session factory) are
created once by the application factory and stored on ``app.state``; the
providers here read them from the request and assemble per-request services
around the request's database session.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lovedev.domain.interfaces.services import IEventPublisher
from lovedev.domain.services.audit import AuditService
from lovedev.domain.services.auth.authentication import AuthenticationFlow
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.domain.services.rbac.catalog import RoleCatalogService
from lovedev.domain.services.rbac.user_administration import UserAdministrationService
from lovedev.domain.value_objects.identity import RequestContext
from lovedev.infrastructure.database.async_db import get_db

# ---------------------------------------------------------------------------
# Infrastructure Layer Dependencies
# ---------------------------------------------------------------------------

AsyncDB = Annotated[AsyncSession, Depends(get_db)]


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_event_publisher(request: Request) -> IEventPublisher:
    return request.app.state.event_publisher


def get_audit_service(request: Request) -> AuditService:
    """Audit writer with its own sessions, independent of the request's transaction."""
    return AuditService(request.app.state.session_factory)


def get_request_context(request: Request) -> RequestContext:
    """Client metadata recorded alongside audit entries and events."""
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        correlation_id=getattr(request.state, "correlation_id", None),
    )


Codec = Annotated[TokenCodec, Depends(get_token_codec)]
Publisher = Annotated[IEventPublisher, Depends(get_event_publisher)]
Audit = Annotated[AuditService, Depends(get_audit_service)]
ClientContext = Annotated[RequestContext, Depends(get_request_context)]

# ---------------------------------------------------------------------------
# Domain Service Dependencies
# ---------------------------------------------------------------------------


def get_authentication_flow(
    db: AsyncDB, codec: Codec, publisher: Publisher, audit: Audit
) -> AuthenticationFlow:
    return AuthenticationFlow(db, codec, publisher, audit_service=audit)


def get_user_administration_service(
    db: AsyncDB, codec: Codec, audit: Audit
) -> UserAdministrationService:
    return UserAdministrationService(db, codec, audit_service=audit)


def get_role_catalog_service(db: AsyncDB, audit: Audit) -> RoleCatalogService:
    return RoleCatalogService(db, audit_service=audit)


AuthFlow = Annotated[AuthenticationFlow, Depends(get_authentication_flow)]
UserAdministration = Annotated[UserAdministrationService, Depends(get_user_administration_service)]
RoleCatalog = Annotated[RoleCatalogService, Depends(get_role_catalog_service)]
