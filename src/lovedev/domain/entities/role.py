from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import String, UniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from lovedev.infrastructure.database.types import UTCDateTime, utc_now


class RolePermission(SQLModel, table=True):
    """Association table granting a permission to a role."""

    __tablename__ = "role_permissions"

    role_id: UUID = Field(foreign_key="roles.id", primary_key=True, ondelete="CASCADE")
    permission_id: UUID = Field(
        foreign_key="permissions.id", primary_key=True, ondelete="CASCADE"
    )


class Permission(SQLModel, table=True):
    """A grant to perform ``action`` on ``resource``.

    Permissions are identified both by a unique ``name`` and by the unique
    ``(resource, action)`` pair, rendered as the authority ``resource:action``.

    Attributes:
        id: Primary key.
        name: Unique human-facing name (e.g. ``USER_READ``).
        resource: The protected resource (e.g. ``user``).
        action: The operation on the resource (e.g. ``read``).
        description: Optional free text.
        created_at: Creation timestamp.
    """

    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(sa_column=Column(String(100), unique=True, nullable=False))
    resource: str = Field(max_length=50, nullable=False)
    action: str = Field(max_length=50, nullable=False)
    description: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )

    @property
    def authority(self) -> str:
        return f"{self.resource}:{self.action}"

    def matches(self, resource: str, action: str) -> bool:
        return self.resource == resource and self.action == action


class Role(SQLModel, table=True):
    """A named bundle of permissions assigned to users.

    Role names carry the ``ROLE_`` prefix. System roles (``ROLE_ADMIN``,
    ``ROLE_MANAGER``, ``ROLE_EMPLOYEE``, ``ROLE_USER``) are seeded by the
    initial migration and can never be deleted.
    """

    __tablename__ = "roles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(sa_column=Column(String(50), unique=True, nullable=False))
    description: Optional[str] = Field(default=None, max_length=500)
    is_system_role: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True, onupdate=utc_now)
    )

    permissions: List[Permission] = Relationship(
        link_model=RolePermission,
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "Permission.name"},
    )

    @property
    def permission_names(self) -> List[str]:
        return [permission.name for permission in self.permissions]

    def has_permission(self, resource: str, action: str) -> bool:
        return any(permission.matches(resource, action) for permission in self.permissions)
