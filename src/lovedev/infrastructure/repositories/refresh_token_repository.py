"""Refresh token persistence backed by SQLAlchemy."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.domain.entities.refresh_token import RefreshToken
from lovedev.domain.interfaces.repositories import IRefreshTokenRepository

logger = get_logger(__name__)


class RefreshTokenRepository(IRefreshTokenRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, token: RefreshToken) -> RefreshToken:
        self.db_session.add(token)
        await self.db_session.flush()
        return token

    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        result = await self.db_session.execute(
            select(RefreshToken).where(RefreshToken.token == token)
        )
        return result.scalars().first()

    async def revoke_all_for_user(self, user_id: UUID, revoked_at: datetime) -> int:
        statement = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True, revoked_at=revoked_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db_session.execute(statement)
        logger.debug("Refresh tokens revoked", user_id=str(user_id), count=result.rowcount)
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        statement = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount or 0
