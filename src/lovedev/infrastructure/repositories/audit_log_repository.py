"""Audit log persistence backed by SQLAlchemy."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lovedev.domain.entities.audit_log import AuditLog
from lovedev.domain.interfaces.repositories import IAuditLogRepository


class AuditLogRepository(IAuditLogRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, entry: AuditLog) -> AuditLog:
        self.db_session.add(entry)
        await self.db_session.flush()
        return entry

    async def list_for_user(self, user_id: UUID, limit: int = 100) -> List[AuditLog]:
        result = await self.db_session.execute(
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
