from __future__ import annotations

"""Response Pydantic models for users and issued tokens."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from lovedev.adapters.api.v1.schemas import CamelModel
from lovedev.domain.entities.user import User, UserStatus
from lovedev.domain.services.auth.authentication import AuthResult


class UserOut(CamelModel):
    """Public profile of :class:`~lovedev.domain.entities.user.User`.

    Never carries the password hash or any one-time token.
    """

    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    status: UserStatus
    email_verified: bool
    roles: List[str] = []
    permissions: List[str] = []
    primary_role: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            status=user.status,
            email_verified=user.email_verified,
            roles=user.role_names,
            permissions=sorted(user.permissions),
            primary_role=user.primary_role,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(CamelModel):
    """Tokens returned by login and refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserOut

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            token_type=result.token_type,
            expires_in=result.expires_in_ms,
            user=UserOut.from_entity(result.user),
        )
