from __future__ import annotations

"""Pydantic schemas for the administration endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from lovedev.adapters.api.v1.schemas import CamelModel
from lovedev.domain.entities.role import Permission, Role
from lovedev.domain.entities.user import UserStatus


class UpdateStatusRequest(CamelModel):
    status: UserStatus = Field(..., examples=["BANNED"])


class RoleRequest(CamelModel):
    """A single role name, with or without the ``ROLE_`` prefix."""

    role_name: str = Field(..., min_length=1, max_length=50, examples=["MANAGER"])


class RolesRequest(CamelModel):
    roles: List[str] = Field(..., examples=[["ROLE_USER", "ROLE_MANAGER"]])


class BatchDeleteRequest(CamelModel):
    user_ids: List[UUID] = Field(..., min_length=1)


class BatchDeleteResponse(CamelModel):
    deleted_ids: List[UUID]


class CreateRoleRequest(CamelModel):
    name: str = Field(..., min_length=3, max_length=50, examples=["ROLE_AUDITOR"])
    description: Optional[str] = Field(default=None, max_length=500)
    permission_names: List[str] = Field(default_factory=list, examples=[["USER_READ"]])


class CreatePermissionRequest(CamelModel):
    name: str = Field(..., min_length=3, max_length=100, examples=["REPORT_READ"])
    resource: str = Field(..., min_length=1, max_length=50, examples=["report"])
    action: str = Field(..., min_length=1, max_length=50, examples=["read"])
    description: Optional[str] = Field(default=None, max_length=500)


class PermissionNamesRequest(CamelModel):
    permission_names: List[str] = Field(..., min_length=1)


class PermissionOut(CamelModel):
    id: UUID
    name: str
    resource: str
    action: str
    authority: str
    description: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, permission: Permission) -> "PermissionOut":
        return cls(
            id=permission.id,
            name=permission.name,
            resource=permission.resource,
            action=permission.action,
            authority=permission.authority,
            description=permission.description,
            created_at=permission.created_at,
        )


class RoleOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_system_role: bool
    permissions: List[str] = []
    user_count: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, role: Role, user_count: Optional[int] = None) -> "RoleOut":
        return cls(
            id=role.id,
            name=role.name,
            description=role.description,
            is_system_role=role.is_system_role,
            permissions=role.permission_names,
            user_count=user_count,
            created_at=role.created_at,
            updated_at=role.updated_at,
        )
