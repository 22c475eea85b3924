"""Role and permission catalog management."""

import re
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.exceptions import (
    ConflictError,
    FieldError,
    PermissionNotFoundError,
    ProtectedRoleError,
    RoleNotFoundError,
    ValidationError,
)
from lovedev.domain.entities.audit_log import AuditAction
from lovedev.domain.entities.role import Permission, Role
from lovedev.domain.interfaces.repositories import IPermissionRepository, IRoleRepository
from lovedev.domain.services.audit import AuditService
from lovedev.domain.services.base import commit_unit_of_work
from lovedev.domain.value_objects.identity import RequestContext, normalize_role
from lovedev.infrastructure.repositories.role_repository import PermissionRepository, RoleRepository

logger = get_logger(__name__)

ROLE_NAME_PATTERN = re.compile(r"^ROLE_[A-Z0-9_]+$")


class RoleCatalogService:
    """Creates and deletes roles and permissions and wires them together."""

    def __init__(
        self,
        db_session: AsyncSession,
        audit_service: Optional[AuditService] = None,
        roles: Optional[IRoleRepository] = None,
        permissions: Optional[IPermissionRepository] = None,
    ):
        self.db_session = db_session
        self.audit_service = audit_service
        self.roles = roles or RoleRepository(db_session)
        self.permissions = permissions or PermissionRepository(db_session)

    async def list_roles(self) -> List[Tuple[Role, int]]:
        """All roles with the number of users holding each."""
        return [(role, await self.roles.count_users(role.id)) for role in await self.roles.list_all()]

    async def get_role(self, name: str) -> Role:
        role = await self.roles.get_by_name(normalize_role(name))
        if role is None:
            raise RoleNotFoundError(f"Role not found: {normalize_role(name)}")
        return role

    async def list_permissions(self) -> List[Permission]:
        return await self.permissions.list_all()

    async def _resolve_permissions(self, names: Iterable[str]) -> List[Permission]:
        wanted = sorted({name.strip() for name in names if name and name.strip()})
        found = await self.permissions.get_by_names(wanted)
        missing = sorted(set(wanted) - {permission.name for permission in found})
        if missing:
            raise PermissionNotFoundError(f"Permission not found: {', '.join(missing)}")
        return found

    async def create_role(
        self,
        name: str,
        description: Optional[str] = None,
        permission_names: Iterable[str] = (),
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> Role:
        """Create a custom (non-system) role.

        Raises:
            ValidationError: The normalized name is not ``ROLE_`` plus upper-case words.
            ConflictError: A role with this name exists.
            PermissionNotFoundError: A listed permission does not exist.
        """
        role_name = normalize_role(name.upper())
        if not ROLE_NAME_PATTERN.match(role_name):
            raise ValidationError(
                "Invalid role name",
                field_errors=[
                    FieldError(
                        field="name",
                        message="Role name may only contain letters, digits and underscores",
                        rejected_value=name,
                    )
                ],
            )
        if await self.roles.get_by_name(role_name) is not None:
            raise ConflictError(f"Role already exists: {role_name}", code="role_already_exists")

        role = Role(
            name=role_name,
            description=description,
            is_system_role=False,
            permissions=await self._resolve_permissions(permission_names),
        )
        await self.roles.add(role)
        await commit_unit_of_work(
            self.db_session,
            ConflictError(f"Role already exists: {role_name}", code="role_already_exists"),
        )
        logger.info("Role created", role=role.name, permissions=role.permission_names)
        await self._audit(
            AuditAction.CREATE,
            "Role",
            role.id,
            actor_id,
            context,
            new_value={"name": role.name, "permissions": role.permission_names},
        )
        return role

    async def delete_role(
        self, name: str, actor_id: Optional[UUID] = None, context: Optional[RequestContext] = None
    ) -> None:
        """Delete a custom role that no user holds.

        Raises:
            RoleNotFoundError: No such role.
            ProtectedRoleError: The role is a system role or is still assigned.
            ConflictError: A user was given the role while it was being deleted.
        """
        role = await self.get_role(name)
        if role.is_system_role:
            raise ProtectedRoleError("System roles cannot be deleted")
        holders = await self.roles.count_users(role.id)
        if holders:
            raise ProtectedRoleError(f"Role {role.name} is still assigned to {holders} user(s)")

        role_id, role_name = role.id, role.name
        await self.roles.delete(role)
        await commit_unit_of_work(
            self.db_session,
            ConflictError(f"Role {role_name} is still assigned", code="role_in_use"),
        )
        logger.info("Role deleted", role=role_name)
        await self._audit(
            AuditAction.DELETE, "Role", role_id, actor_id, context, old_value={"name": role_name}
        )

    async def create_permission(
        self,
        name: str,
        resource: str,
        action: str,
        description: Optional[str] = None,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> Permission:
        """Create a permission unique by name and by ``resource:action``.

        Raises:
            ConflictError: The name or the resource/action pair is taken.
        """
        name, resource, action = name.strip(), resource.strip(), action.strip()
        if await self.permissions.get_by_name(name) is not None:
            raise ConflictError(
                f"Permission already exists: {name}", code="permission_already_exists"
            )
        if await self.permissions.get_by_resource_action(resource, action) is not None:
            raise ConflictError(
                f"Permission already exists for {resource}:{action}",
                code="permission_already_exists",
            )

        permission = Permission(name=name, resource=resource, action=action, description=description)
        await self.permissions.add(permission)
        await commit_unit_of_work(
            self.db_session,
            ConflictError(f"Permission already exists: {name}", code="permission_already_exists"),
        )
        logger.info("Permission created", permission=permission.name, authority=permission.authority)
        await self._audit(
            AuditAction.CREATE,
            "Permission",
            permission.id,
            actor_id,
            context,
            new_value={"name": permission.name, "authority": permission.authority},
        )
        return permission

    async def assign_permissions(
        self,
        role_name: str,
        permission_names: Iterable[str],
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> Role:
        """Grant permissions to a role; already granted ones are left as they are."""
        role = await self.get_role(role_name)
        granted = await self._resolve_permissions(permission_names)
        if not granted:
            raise ValidationError(
                "At least one permission is required",
                field_errors=[FieldError(field="permissionNames", message="must not be empty")],
            )

        before = role.permission_names
        held = {permission.name for permission in role.permissions}
        for permission in granted:
            if permission.name not in held:
                role.permissions.append(permission)
        return await self._save_permissions(role, before, actor_id, context)

    async def remove_permissions(
        self,
        role_name: str,
        permission_names: Iterable[str],
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> Role:
        """Withdraw permissions from a role; names the role does not hold are ignored."""
        role = await self.get_role(role_name)
        dropped = {permission.name for permission in await self._resolve_permissions(permission_names)}

        before = role.permission_names
        role.permissions = [p for p in role.permissions if p.name not in dropped]
        return await self._save_permissions(role, before, actor_id, context)

    async def _save_permissions(
        self,
        role: Role,
        before: List[str],
        actor_id: Optional[UUID],
        context: Optional[RequestContext],
    ) -> Role:
        await self.roles.add(role)
        await commit_unit_of_work(self.db_session)
        after = sorted(role.permission_names)
        logger.info("Role permissions changed", role=role.name, before=before, after=after)
        await self._audit(
            AuditAction.UPDATE,
            "Role",
            role.id,
            actor_id,
            context,
            old_value={"permissions": before},
            new_value={"permissions": after},
        )
        return role

    async def _audit(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id,
        actor_id: Optional[UUID],
        context: Optional[RequestContext],
        old_value=None,
        new_value=None,
    ) -> None:
        if self.audit_service is None:
            return
        await self.audit_service.log_action(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=actor_id,
            old_value=old_value,
            new_value=new_value,
            context=context,
        )
