"""Audit trail writer.

Audit entries are written in their own session and transaction after the
primary operation has committed. Writing an entry must never fail the
operation it describes, so every error is logged and dropped here.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from lovedev.domain.entities.audit_log import AuditAction, AuditLog
from lovedev.domain.value_objects.identity import RequestContext
from lovedev.infrastructure.repositories.audit_log_repository import AuditLogRepository

logger = get_logger(__name__)


class AuditService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def log_action(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: Any = None,
        user_id: Optional[UUID] = None,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Append an audit entry; failures are logged, never raised."""
        context = context or RequestContext()
        entry = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            old_value=old_value,
            new_value=new_value,
            ip_address=context.ip_address,
            user_agent=(context.user_agent or "")[:500] or None,
            description=description,
        )
        try:
            async with self.session_factory() as session:
                await AuditLogRepository(session).add(entry)
                await session.commit()
        except Exception as e:  # noqa: BLE001
            logger.error(
                "Failed to write audit log",
                action=action.value,
                entity_type=entity_type,
                entity_id=entry.entity_id,
                correlation_id=context.correlation_id,
                error=str(e),
            )
            return
        logger.debug("Audit log written", action=action.value, entity_type=entity_type)
