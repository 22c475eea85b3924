"""Reference data every deployment needs: system roles and base permissions.

The initial Alembic migration inserts the same rows; this module seeds them
when the schema is created directly (``DB_AUTO_CREATE`` and the test suite).
"""

from typing import Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.domain.entities.role import Permission, Role
from lovedev.infrastructure.repositories.role_repository import PermissionRepository, RoleRepository

logger = get_logger(__name__)

# name -> (resource, action, description)
BASE_PERMISSIONS: Dict[str, Tuple[str, str, str]] = {
    "USER_READ": ("user", "read", "Read user profiles"),
    "USER_WRITE": ("user", "write", "Update user profiles and status"),
    "USER_DELETE": ("user", "delete", "Delete users"),
    "ROLE_MANAGE": ("role", "manage", "Manage roles and permissions"),
}

# name -> (description, permission names)
SYSTEM_ROLES: Dict[str, Tuple[str, List[str]]] = {
    "ROLE_ADMIN": ("Administrator", ["USER_READ", "USER_WRITE", "USER_DELETE", "ROLE_MANAGE"]),
    "ROLE_MANAGER": ("Manager", ["USER_READ", "USER_WRITE"]),
    "ROLE_EMPLOYEE": ("Employee", ["USER_READ"]),
    "ROLE_USER": ("Regular user", []),
}


async def seed_system_roles(session: AsyncSession) -> None:
    """Insert missing system roles and base permissions, then commit.

    Existing rows are left untouched so the function is safe to run at every
    startup.
    """
    roles = RoleRepository(session)
    permissions = PermissionRepository(session)

    by_name: Dict[str, Permission] = {}
    for name, (resource, action, description) in BASE_PERMISSIONS.items():
        permission = await permissions.get_by_name(name)
        if permission is None:
            permission = await permissions.add(
                Permission(name=name, resource=resource, action=action, description=description)
            )
        by_name[name] = permission

    created = []
    for name, (description, granted) in SYSTEM_ROLES.items():
        if await roles.get_by_name(name) is not None:
            continue
        await roles.add(
            Role(
                name=name,
                description=description,
                is_system_role=True,
                permissions=[by_name[p] for p in granted],
            )
        )
        created.append(name)

    await session.commit()
    if created:
        logger.info("system_roles_seeded", roles=created)
