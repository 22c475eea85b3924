"""Role and Permission repositories backed by SQLAlchemy."""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.domain.entities.role import Permission, Role
from lovedev.domain.entities.user import User, UserRole
from lovedev.domain.interfaces.repositories import IPermissionRepository, IRoleRepository

logger = get_logger(__name__)


class RoleRepository(IRoleRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_name(self, name: str) -> Optional[Role]:
        result = await self.db_session.execute(select(Role).where(Role.name == name))
        return result.scalars().first()

    async def get_by_names(self, names: Sequence[str]) -> List[Role]:
        if not names:
            return []
        result = await self.db_session.execute(
            select(Role).where(Role.name.in_(list(names))).order_by(Role.name)
        )
        return list(result.scalars().all())

    async def list_all(self) -> List[Role]:
        result = await self.db_session.execute(select(Role).order_by(Role.name))
        return list(result.scalars().all())

    async def count_users(self, role_id: UUID) -> int:
        statement = (
            select(func.count())
            .select_from(UserRole)
            .join(User, User.id == UserRole.user_id)
            .where(UserRole.role_id == role_id, User.deleted_at.is_(None))
        )
        result = await self.db_session.execute(statement)
        return int(result.scalar_one())

    async def add(self, role: Role) -> Role:
        self.db_session.add(role)
        await self.db_session.flush()
        logger.debug("Role staged", role=role.name)
        return role

    async def delete(self, role: Role) -> None:
        # Not flushed: a role still referenced by user_roles fails at commit.
        await self.db_session.delete(role)
        logger.debug("Role delete staged", role=role.name)


class PermissionRepository(IPermissionRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_name(self, name: str) -> Optional[Permission]:
        result = await self.db_session.execute(select(Permission).where(Permission.name == name))
        return result.scalars().first()

    async def get_by_names(self, names: Sequence[str]) -> List[Permission]:
        if not names:
            return []
        result = await self.db_session.execute(
            select(Permission).where(Permission.name.in_(list(names))).order_by(Permission.name)
        )
        return list(result.scalars().all())

    async def get_by_resource_action(self, resource: str, action: str) -> Optional[Permission]:
        result = await self.db_session.execute(
            select(Permission).where(Permission.resource == resource, Permission.action == action)
        )
        return result.scalars().first()

    async def list_all(self) -> List[Permission]:
        result = await self.db_session.execute(
            select(Permission).order_by(Permission.resource, Permission.action)
        )
        return list(result.scalars().all())

    async def add(self, permission: Permission) -> Permission:
        self.db_session.add(permission)
        await self.db_session.flush()
        logger.debug("Permission staged", permission=permission.name)
        return permission
