from datetime import datetime
from enum import Enum
from typing import List, Optional, Set
from uuid import UUID, uuid4

from sqlalchemy import Enum as SAEnum
from sqlalchemy import String
from sqlmodel import Column, Field, Index, Relationship, SQLModel

from lovedev.domain.entities.role import Role
from lovedev.infrastructure.database.types import UTCDateTime, utc_now

# Highest first; used to pick the role shown as a user's primary role
ROLE_PRIORITY = ("ROLE_ADMIN", "ROLE_MANAGER", "ROLE_EMPLOYEE", "ROLE_USER")


class UserStatus(str, Enum):
    """Lifecycle status of an account.

    INACTIVE accounts are registered but not yet email-verified. BANNED
    accounts can never log in, even when verified.
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BANNED = "BANNED"


class UserRole(SQLModel, table=True):
    """Association table assigning a role to a user.

    A role cannot be deleted while any row here still references it.
    """

    __tablename__ = "user_roles"

    user_id: UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    role_id: UUID = Field(foreign_key="roles.id", primary_key=True, ondelete="RESTRICT")


class User(SQLModel, table=True):
    """Represents a User entity and acts as an Aggregate Root.

    A user holds one or more roles; the effective permission set is the union
    of the permissions of those roles. Accounts start INACTIVE and unverified
    and become ACTIVE when the email verification token is redeemed.

    Attributes:
        id: Primary key.
        email: Unique email address, matched exactly.
        password_hash: Bcrypt hash of the password.
        first_name / last_name: Display names.
        status: ACTIVE, INACTIVE or BANNED.
        email_verified: Whether the verification token has been redeemed.
        verification_token / verification_token_expires_at: Pending email
            verification token, cleared on redemption.
        reset_password_token / reset_password_token_expires_at: Pending
            password-reset token, cleared on redemption.
        last_login_at: Timestamp of the last successful login.
        deleted_at: Soft-delete marker; deleted users are invisible to lookups.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_verification_token", "verification_token"),
        Index("ix_users_reset_password_token", "reset_password_token"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(sa_column=Column(String(255), unique=True, index=True, nullable=False))
    password_hash: str = Field(max_length=255, nullable=False)
    first_name: str = Field(max_length=100, nullable=False)
    last_name: str = Field(max_length=100, nullable=False)
    status: UserStatus = Field(
        default=UserStatus.INACTIVE,
        sa_column=Column(
            SAEnum(UserStatus, name="user_status", native_enum=False, length=16),
            nullable=False,
        ),
    )
    email_verified: bool = Field(default=False, nullable=False)
    verification_token: Optional[str] = Field(default=None, max_length=64)
    verification_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )
    reset_password_token: Optional[str] = Field(default=None, max_length=64)
    reset_password_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )
    last_login_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True, onupdate=utc_now)
    )
    deleted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )

    roles: List[Role] = Relationship(
        link_model=UserRole,
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "Role.name"},
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_names(self) -> List[str]:
        return [role.name for role in self.roles]

    @property
    def permissions(self) -> Set[str]:
        """Union of ``resource:action`` authorities over all assigned roles."""
        return {permission.authority for role in self.roles for permission in role.permissions}

    @property
    def permission_names(self) -> Set[str]:
        return {permission.name for role in self.roles for permission in role.permissions}

    def has_role(self, role_name: str) -> bool:
        return role_name in self.role_names

    def has_permission(self, resource: str, action: str) -> bool:
        return any(role.has_permission(resource, action) for role in self.roles)

    @property
    def primary_role(self) -> Optional[str]:
        """The most privileged known role, else any role, else ``None``."""
        names = self.role_names
        for candidate in ROLE_PRIORITY:
            if candidate in names:
                return candidate
        return names[0] if names else None

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
