from __future__ import annotations

"""Route guards.

The authorization middleware never rejects a request; it only attaches the
identity it could establish (or ``None``) to ``request.state.identity``.
These dependencies are where access is decided, and every one of them fails
closed: no identity means 401, an identity without the required role or
permission means 403.
"""

from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends, Request

from lovedev.core.exceptions import PermissionDeniedError, UnauthorizedError
from lovedev.domain.entities.user import User
from lovedev.domain.value_objects.identity import Identity, LocalUser, normalize_role
from lovedev.infrastructure.dependency_injection.auth_dependencies import AsyncDB
from lovedev.infrastructure.repositories.user_repository import UserRepository

__all__ = [
    "get_current_identity",
    "get_current_user",
    "require_roles",
    "require_permission",
    "CurrentIdentity",
    "CurrentUser",
]


def get_current_identity(request: Request) -> Identity:
    """Return the identity established by the middleware, or fail with 401."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise UnauthorizedError()
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def get_current_user(identity: CurrentIdentity, db: AsyncDB) -> User:
    """Load the account behind a user identity.

    Service principals have no account and are refused; a token whose user
    has since been deleted counts as unauthenticated.
    """
    if not isinstance(identity, LocalUser):
        raise PermissionDeniedError("A user account is required for this operation")
    user = await UserRepository(db).get_by_id(identity.user_id)
    if user is None:
        raise UnauthorizedError("User no longer exists")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[..., Identity]:
    """Dependency factory admitting identities that hold any of ``roles``."""
    wanted = tuple(normalize_role(role) for role in roles)

    def guard(identity: CurrentIdentity) -> Identity:
        if not identity.has_any_role(wanted):
            raise PermissionDeniedError()
        return identity

    return guard


def require_permission(resource: str, action: str) -> Callable[..., object]:
    """Dependency factory admitting users whose roles grant ``resource:action``.

    Permissions are read from the store on every request, so grants and
    revocations take effect without waiting for a new access token.
    """

    async def guard(user: CurrentUser) -> User:
        if not user.has_permission(resource, action):
            raise PermissionDeniedError(f"Missing permission {resource}:{action}")
        return user

    return guard


def identity_user_id(identity: Identity) -> UUID | None:
    """The acting user's id for audit entries; ``None`` for service principals."""
    return identity.user_id if isinstance(identity, LocalUser) else None
