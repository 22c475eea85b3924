"""Role and permission catalog endpoints, restricted to ``ROLE_ADMIN``."""

from typing import List

from fastapi import APIRouter, Depends, status

from lovedev.adapters.api.v1.admin.schemas import (
    CreatePermissionRequest,
    CreateRoleRequest,
    PermissionNamesRequest,
    PermissionOut,
    RoleOut,
)
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.dependencies.auth import identity_user_id, require_roles
from lovedev.domain.value_objects.identity import Identity
from lovedev.infrastructure.dependency_injection.auth_dependencies import ClientContext, RoleCatalog

router = APIRouter()

AdminIdentity = Depends(require_roles("ADMIN"))


@router.get("/roles", response_model=ApiResponse[List[RoleOut]], summary="List roles")
async def list_roles(catalog: RoleCatalog, admin: Identity = AdminIdentity):
    roles = await catalog.list_roles()
    return ok([RoleOut.from_entity(role, count) for role, count in roles])


@router.post(
    "/roles",
    response_model=ApiResponse[RoleOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a role",
)
async def create_role(
    payload: CreateRoleRequest,
    catalog: RoleCatalog,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    role = await catalog.create_role(
        payload.name,
        description=payload.description,
        permission_names=payload.permission_names,
        actor_id=identity_user_id(admin),
        context=context,
    )
    return ok(RoleOut.from_entity(role, 0), "Role created")


@router.delete("/roles/{name}", response_model=ApiResponse[None], summary="Delete a role")
async def delete_role(
    name: str, catalog: RoleCatalog, context: ClientContext, admin: Identity = AdminIdentity
):
    """System roles and roles still held by a user cannot be deleted."""
    await catalog.delete_role(name, actor_id=identity_user_id(admin), context=context)
    return ok(message="Role deleted")


@router.post(
    "/roles/{name}/permissions",
    response_model=ApiResponse[RoleOut],
    summary="Grant permissions to a role",
)
async def assign_permissions(
    name: str,
    payload: PermissionNamesRequest,
    catalog: RoleCatalog,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    role = await catalog.assign_permissions(
        name, payload.permission_names, actor_id=identity_user_id(admin), context=context
    )
    return ok(RoleOut.from_entity(role), "Permissions assigned")


@router.delete(
    "/roles/{name}/permissions",
    response_model=ApiResponse[RoleOut],
    summary="Withdraw permissions from a role",
)
async def remove_permissions(
    name: str,
    payload: PermissionNamesRequest,
    catalog: RoleCatalog,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    role = await catalog.remove_permissions(
        name, payload.permission_names, actor_id=identity_user_id(admin), context=context
    )
    return ok(RoleOut.from_entity(role), "Permissions removed")


@router.get(
    "/permissions", response_model=ApiResponse[List[PermissionOut]], summary="List permissions"
)
async def list_permissions(catalog: RoleCatalog, admin: Identity = AdminIdentity):
    permissions = await catalog.list_permissions()
    return ok([PermissionOut.from_entity(permission) for permission in permissions])


@router.post(
    "/permissions",
    response_model=ApiResponse[PermissionOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a permission",
)
async def create_permission(
    payload: CreatePermissionRequest,
    catalog: RoleCatalog,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    permission = await catalog.create_permission(
        payload.name,
        payload.resource,
        payload.action,
        description=payload.description,
        actor_id=identity_user_id(admin),
        context=context,
    )
    return ok(PermissionOut.from_entity(permission), "Permission created")
