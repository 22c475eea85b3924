from uuid import uuid4

import pytest

from lovedev.core.exceptions import (
    RefreshTokenExpiredOrRevokedError,
    RoleAssignmentError,
    RoleNotFoundError,
    UserNotFoundError,
)
from lovedev.domain.entities.audit_log import AuditAction
from lovedev.domain.entities.user import UserStatus
from lovedev.infrastructure.repositories.audit_log_repository import AuditLogRepository
from tests.factories import create_user


async def _reloaded_roles(db_session, user_admin, user_id):
    await db_session.rollback()
    return (await user_admin.get_user(user_id)).role_names


@pytest.mark.asyncio
async def test_last_role_cannot_be_removed(db_session, user_admin):
    user = await create_user(db_session)

    with pytest.raises(RoleAssignmentError) as exc:
        await user_admin.remove_role(user.id, "ROLE_USER")

    assert "last role" in exc.value.message
    assert await _reloaded_roles(db_session, user_admin, user.id) == ["ROLE_USER"]


@pytest.mark.asyncio
async def test_add_and_remove_role(db_session, user_admin):
    user = await create_user(db_session)

    updated = await user_admin.add_role(user.id, "MANAGER")
    assert sorted(updated.role_names) == ["ROLE_MANAGER", "ROLE_USER"]

    updated = await user_admin.remove_role(user.id, "ROLE_USER")
    assert updated.role_names == ["ROLE_MANAGER"]
    assert await _reloaded_roles(db_session, user_admin, user.id) == ["ROLE_MANAGER"]


@pytest.mark.asyncio
async def test_add_role_the_user_already_has(db_session, user_admin):
    user = await create_user(db_session)

    with pytest.raises(RoleAssignmentError):
        await user_admin.add_role(user.id, "USER")


@pytest.mark.asyncio
async def test_remove_role_the_user_lacks(db_session, user_admin):
    user = await create_user(db_session, roles=("ROLE_USER", "ROLE_EMPLOYEE"))

    with pytest.raises(RoleAssignmentError):
        await user_admin.remove_role(user.id, "ROLE_ADMIN")


@pytest.mark.asyncio
async def test_unknown_role_and_unknown_user(db_session, user_admin):
    user = await create_user(db_session)

    with pytest.raises(RoleNotFoundError):
        await user_admin.add_role(user.id, "ROLE_WIZARD")
    with pytest.raises(UserNotFoundError):
        await user_admin.add_role(uuid4(), "ROLE_USER")


@pytest.mark.asyncio
async def test_replace_roles(db_session, user_admin):
    user = await create_user(db_session)

    updated = await user_admin.replace_roles(user.id, ["ADMIN", "ROLE_MANAGER", "ADMIN"])

    assert updated.role_names == ["ROLE_ADMIN", "ROLE_MANAGER"]
    assert updated.primary_role == "ROLE_ADMIN"


@pytest.mark.asyncio
@pytest.mark.parametrize("role_names", [[], ["", "   "]])
async def test_replace_roles_requires_at_least_one(db_session, user_admin, role_names):
    user = await create_user(db_session)

    with pytest.raises(RoleAssignmentError):
        await user_admin.replace_roles(user.id, role_names)


@pytest.mark.asyncio
async def test_replace_roles_with_an_unknown_name_changes_nothing(db_session, user_admin):
    user = await create_user(db_session)

    with pytest.raises(RoleNotFoundError) as exc:
        await user_admin.replace_roles(user.id, ["ROLE_MANAGER", "ROLE_WIZARD"])

    assert "ROLE_WIZARD" in exc.value.message
    assert await _reloaded_roles(db_session, user_admin, user.id) == ["ROLE_USER"]


@pytest.mark.asyncio
async def test_set_single_role(db_session, user_admin):
    user = await create_user(db_session, roles=("ROLE_USER", "ROLE_MANAGER"))

    updated = await user_admin.set_single_role(user.id, "EMPLOYEE")

    assert updated.role_names == ["ROLE_EMPLOYEE"]


@pytest.mark.asyncio
async def test_role_change_is_audited_with_before_and_after(db_session, user_admin, session_factory):
    admin = await create_user(db_session, roles=("ROLE_ADMIN",))
    user = await create_user(db_session)

    await user_admin.add_role(user.id, "ROLE_MANAGER", actor_id=admin.id)

    async with session_factory() as session:
        [entry] = await AuditLogRepository(session).list_for_user(admin.id)
    assert entry.action == AuditAction.CHANGE_ROLE
    assert entry.entity_type == "User"
    assert entry.entity_id == str(user.id)
    assert entry.old_value == {"roles": ["ROLE_USER"]}
    assert sorted(entry.new_value["roles"]) == ["ROLE_MANAGER", "ROLE_USER"]


@pytest.mark.asyncio
async def test_banning_revokes_every_session(db_session, user_admin, session_manager):
    user = await create_user(db_session)
    token = await session_manager.create(user)
    await db_session.commit()

    updated = await user_admin.update_status(user.id, UserStatus.BANNED)

    assert updated.status == UserStatus.BANNED
    with pytest.raises(RefreshTokenExpiredOrRevokedError):
        await session_manager.verify(token.token)


@pytest.mark.asyncio
async def test_deactivation_keeps_sessions(db_session, user_admin, session_manager):
    user = await create_user(db_session)
    token = await session_manager.create(user)
    await db_session.commit()

    await user_admin.update_status(user.id, UserStatus.INACTIVE)

    assert (await session_manager.verify(token.token)).user_id == user.id


@pytest.mark.asyncio
async def test_delete_user_is_soft(db_session, user_admin, session_manager):
    user = await create_user(db_session, roles=("ROLE_USER", "ROLE_MANAGER"))
    token = await session_manager.create(user)
    await db_session.commit()

    await user_admin.delete_user(user.id)

    assert user.is_deleted
    assert user.roles == []
    with pytest.raises(UserNotFoundError):
        await user_admin.get_user(user.id)
    with pytest.raises(RefreshTokenExpiredOrRevokedError):
        await session_manager.verify(token.token)
    with pytest.raises(UserNotFoundError):
        await user_admin.delete_user(user.id)


@pytest.mark.asyncio
async def test_delete_users_skips_unknown_ids(db_session, user_admin):
    first = await create_user(db_session)
    second = await create_user(db_session)

    deleted = await user_admin.delete_users([first.id, uuid4(), first.id, second.id])

    assert deleted == [first.id, second.id]
    for user_id in deleted:
        with pytest.raises(UserNotFoundError):
            await user_admin.get_user(user_id)
