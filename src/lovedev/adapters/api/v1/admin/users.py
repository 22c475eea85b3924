"""User administration endpoints.

Mutations require ``ROLE_ADMIN``; reading a user requires the ``user:read`` permission.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from lovedev.adapters.api.v1.admin.schemas import (
    BatchDeleteRequest,
    BatchDeleteResponse,
    RoleRequest,
    RolesRequest,
    UpdateStatusRequest,
)
from lovedev.adapters.api.v1.auth.schemas import UserOut
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.dependencies.auth import identity_user_id, require_permission, require_roles
from lovedev.domain.value_objects.identity import Identity
from lovedev.infrastructure.dependency_injection.auth_dependencies import (
    ClientContext,
    UserAdministration,
)

router = APIRouter()

AdminIdentity = Depends(require_roles("ADMIN"))


@router.delete("/batch", response_model=ApiResponse[BatchDeleteResponse], summary="Delete users")
async def delete_users(
    payload: BatchDeleteRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    """Soft delete several users at once; unknown ids are skipped."""
    deleted = await service.delete_users(
        payload.user_ids, actor_id=identity_user_id(admin), context=context
    )
    return ok(BatchDeleteResponse(deleted_ids=deleted), f"{len(deleted)} user(s) deleted")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserOut],
    summary="Get a user",
    dependencies=[Depends(require_permission("user", "read"))],
)
async def get_user(user_id: UUID, service: UserAdministration):
    """Open to any user whose roles grant user:read, not only administrators."""
    return ok(UserOut.from_entity(await service.get_user(user_id)))


@router.put("/{user_id}/status", response_model=ApiResponse[UserOut], summary="Change user status")
async def update_status(
    user_id: UUID,
    payload: UpdateStatusRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    """Banning a user also ends all of their sessions."""
    user = await service.update_status(
        user_id, payload.status, actor_id=identity_user_id(admin), context=context
    )
    return ok(UserOut.from_entity(user), "User status updated")


@router.delete("/{user_id}", response_model=ApiResponse[None], summary="Delete a user")
async def delete_user(
    user_id: UUID,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    await service.delete_user(user_id, actor_id=identity_user_id(admin), context=context)
    return ok(message="User deleted")


@router.post("/{user_id}/roles", response_model=ApiResponse[UserOut], summary="Add a role")
async def add_role(
    user_id: UUID,
    payload: RoleRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    user = await service.add_role(
        user_id, payload.role_name, actor_id=identity_user_id(admin), context=context
    )
    return ok(UserOut.from_entity(user), "Role added")


@router.delete("/{user_id}/roles", response_model=ApiResponse[UserOut], summary="Remove a role")
async def remove_role(
    user_id: UUID,
    payload: RoleRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    """Refused when it is the user's last role."""
    user = await service.remove_role(
        user_id, payload.role_name, actor_id=identity_user_id(admin), context=context
    )
    return ok(UserOut.from_entity(user), "Role removed")


@router.put("/{user_id}/roles", response_model=ApiResponse[UserOut], summary="Replace all roles")
async def replace_roles(
    user_id: UUID,
    payload: RolesRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    user = await service.replace_roles(
        user_id, payload.roles, actor_id=identity_user_id(admin), context=context
    )
    return ok(UserOut.from_entity(user), "Roles updated")


@router.put("/{user_id}/role", response_model=ApiResponse[UserOut], summary="Set a single role")
async def set_single_role(
    user_id: UUID,
    payload: RoleRequest,
    service: UserAdministration,
    context: ClientContext,
    admin: Identity = AdminIdentity,
):
    user = await service.set_single_role(
        user_id, payload.role_name, actor_id=identity_user_id(admin), context=context
    )
    return ok(UserOut.from_entity(user), "Role updated")
