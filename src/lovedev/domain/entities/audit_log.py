from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, Index, SQLModel

from lovedev.infrastructure.database.types import UTCDateTime, utc_now


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REGISTER = "REGISTER"
    VERIFY_EMAIL = "VERIFY_EMAIL"
    RESET_PASSWORD = "RESET_PASSWORD"
    CHANGE_ROLE = "CHANGE_ROLE"
    CHANGE_STATUS = "CHANGE_STATUS"


class AuditLog(SQLModel, table=True):
    """Append-only record of a security-relevant action.

    ``user_id`` is the acting user (nullable for anonymous actions such as a
    password reset redeemed by token); ``entity_type``/``entity_id`` name the
    object acted on.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    action: AuditAction = Field(
        sa_column=Column(
            SAEnum(AuditAction, name="audit_action", native_enum=False, length=32),
            nullable=False,
        )
    )
    entity_type: str = Field(max_length=50, nullable=False)
    entity_id: Optional[str] = Field(default=None, max_length=64)
    old_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    new_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )
