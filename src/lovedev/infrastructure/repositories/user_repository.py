"""User Repository implementation using SQLAlchemy.

Provides the concrete `IUserRepository` used by the authentication flow and
the admin services. All methods operate inside the injected session and
never commit.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.logging import mask_email
from lovedev.domain.entities.user import User
from lovedev.domain.interfaces.repositories import IUserRepository

logger = get_logger(__name__)


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of `IUserRepository`.

    Soft-deleted users (``deleted_at`` set) are filtered out of every lookup
    except :meth:`exists_by_email`, which guards the unique email column.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _live(self):
        return select(User).where(User.deleted_at.is_(None))

    async def _first(self, statement, for_update: bool) -> Optional[User]:
        if for_update:
            # Refresh the identity map with the locked row so callers see
            # the state committed by whoever held the lock before us.
            statement = statement.with_for_update(of=User).execution_options(
                populate_existing=True
            )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_by_id(self, user_id: UUID, *, for_update: bool = False) -> Optional[User]:
        user = await self._first(self._live().where(User.id == user_id), for_update)
        logger.debug("User lookup by ID completed", user_id=str(user_id), found=user is not None)
        return user

    async def get_by_email(self, email: str, *, for_update: bool = False) -> Optional[User]:
        user = await self._first(self._live().where(User.email == email), for_update)
        logger.debug(
            "User lookup by email completed", email=mask_email(email), found=user is not None
        )
        return user

    async def exists_by_email(self, email: str) -> bool:
        result = await self.db_session.execute(select(exists().where(User.email == email)))
        return bool(result.scalar())

    async def get_by_verification_token(self, token: str) -> Optional[User]:
        return await self._first(self._live().where(User.verification_token == token), False)

    async def get_by_reset_token(self, token: str, *, for_update: bool = False) -> Optional[User]:
        return await self._first(self._live().where(User.reset_password_token == token), for_update)

    async def add(self, user: User) -> User:
        self.db_session.add(user)
        await self.db_session.flush()
        logger.debug("User staged", user_id=str(user.id))
        return user
