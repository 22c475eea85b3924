import pytest
import pytest_asyncio
from sqlalchemy import event

from lovedev.core.exceptions import (
    ConflictError,
    PermissionNotFoundError,
    ProtectedRoleError,
    RoleNotFoundError,
    ValidationError,
)
from lovedev.domain.services.rbac.catalog import RoleCatalogService
from lovedev.domain.services.rbac.user_administration import UserAdministrationService
from lovedev.infrastructure.database.async_db import (
    build_engine,
    build_session_factory,
    create_db_and_tables,
)
from lovedev.infrastructure.database.seed import seed_system_roles
from tests.factories import create_user


def _enforce_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def fk_session():
    """A session on a database that enforces foreign keys, as PostgreSQL does."""
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    event.listen(engine.sync_engine, "connect", _enforce_foreign_keys)
    await create_db_and_tables(engine)
    factory = build_session_factory(engine)
    async with factory() as session:
        await seed_system_roles(session)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.mark.asyncio
async def test_create_role_normalizes_the_name(role_catalog):
    role = await role_catalog.create_role("support_agent", "Front line support", ["USER_READ"])

    assert role.name == "ROLE_SUPPORT_AGENT"
    assert role.is_system_role is False
    assert role.permission_names == ["USER_READ"]
    assert role.has_permission("user", "read")
    assert (await role_catalog.get_role("SUPPORT_AGENT")).id == role.id


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["bad-name", "has space", "ROLE_"])
async def test_create_role_rejects_invalid_names(role_catalog, name):
    with pytest.raises(ValidationError) as exc:
        await role_catalog.create_role(name)

    assert exc.value.field_errors[0].field == "name"


@pytest.mark.asyncio
async def test_create_role_conflicts_with_existing(role_catalog):
    with pytest.raises(ConflictError):
        await role_catalog.create_role("admin")


@pytest.mark.asyncio
async def test_create_role_with_unknown_permission(role_catalog):
    with pytest.raises(PermissionNotFoundError):
        await role_catalog.create_role("AUDITOR", permission_names=["AUDIT_EVERYTHING"])


@pytest.mark.asyncio
async def test_system_roles_cannot_be_deleted(role_catalog):
    with pytest.raises(ProtectedRoleError):
        await role_catalog.delete_role("ROLE_ADMIN")


@pytest.mark.asyncio
async def test_assigned_role_cannot_be_deleted(role_catalog, user_admin, db_session):
    await role_catalog.create_role("AUDITOR")
    user = await create_user(db_session)
    await user_admin.add_role(user.id, "AUDITOR")

    with pytest.raises(ProtectedRoleError):
        await role_catalog.delete_role("AUDITOR")


@pytest.mark.asyncio
async def test_delete_custom_role(role_catalog):
    await role_catalog.create_role("AUDITOR")

    await role_catalog.delete_role("ROLE_AUDITOR")

    with pytest.raises(RoleNotFoundError):
        await role_catalog.get_role("ROLE_AUDITOR")
    with pytest.raises(RoleNotFoundError):
        await role_catalog.delete_role("ROLE_AUDITOR")


@pytest.mark.asyncio
async def test_create_permission(role_catalog):
    permission = await role_catalog.create_permission("REPORT_VIEW", "report", "view", "See reports")

    assert permission.authority == "report:view"
    assert "REPORT_VIEW" in [p.name for p in await role_catalog.list_permissions()]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, resource, action",
    [("USER_READ", "report", "view"), ("USER_READ_AGAIN", "user", "read")],
)
async def test_create_permission_conflicts(role_catalog, name, resource, action):
    with pytest.raises(ConflictError):
        await role_catalog.create_permission(name, resource, action)


@pytest.mark.asyncio
async def test_assign_and_remove_permissions(role_catalog):
    role = await role_catalog.assign_permissions("EMPLOYEE", ["USER_WRITE", "USER_READ"])
    assert sorted(role.permission_names) == ["USER_READ", "USER_WRITE"]
    assert role.has_permission("user", "write")

    role = await role_catalog.remove_permissions("ROLE_EMPLOYEE", ["USER_WRITE", "USER_DELETE"])
    assert role.permission_names == ["USER_READ"]


@pytest.mark.asyncio
async def test_assign_permissions_validation(role_catalog):
    with pytest.raises(ValidationError):
        await role_catalog.assign_permissions("ROLE_EMPLOYEE", [])
    with pytest.raises(PermissionNotFoundError):
        await role_catalog.assign_permissions("ROLE_EMPLOYEE", ["NOPE"])
    with pytest.raises(RoleNotFoundError):
        await role_catalog.assign_permissions("ROLE_NOPE", ["USER_READ"])


@pytest.mark.asyncio
async def test_list_roles_counts_holders(role_catalog, user_admin, db_session):
    await create_user(db_session, roles=("ROLE_ADMIN",))
    await create_user(db_session, roles=("ROLE_ADMIN", "ROLE_USER"))
    deleted = await create_user(db_session, roles=("ROLE_ADMIN",))
    await user_admin.delete_user(deleted.id)

    counts = {role.name: count for role, count in await role_catalog.list_roles()}

    assert counts == {"ROLE_ADMIN": 2, "ROLE_EMPLOYEE": 0, "ROLE_MANAGER": 0, "ROLE_USER": 1}


@pytest.mark.asyncio
async def test_role_deletion_racing_an_assignment_keeps_the_users_role(
    fk_session, token_codec, mocker
):
    catalog = RoleCatalogService(fk_session)
    user_admin = UserAdministrationService(fk_session, token_codec)
    await catalog.create_role("TEMP")
    user = await create_user(fk_session)
    await user_admin.replace_roles(user.id, ["ROLE_TEMP"])
    # The holder count was read before the assignment committed.
    mocker.patch.object(catalog.roles, "count_users", return_value=0)

    with pytest.raises(ConflictError) as exc:
        await catalog.delete_role("ROLE_TEMP")

    assert exc.value.code == "role_in_use"
    assert (await user_admin.get_user(user.id)).role_names == ["ROLE_TEMP"]
    assert (await catalog.get_role("ROLE_TEMP")).name == "ROLE_TEMP"
