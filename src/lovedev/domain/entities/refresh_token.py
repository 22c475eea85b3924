from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import String
from sqlmodel import Column, Field, Index, SQLModel

from lovedev.infrastructure.database.types import UTCDateTime, utc_now


class RefreshToken(SQLModel, table=True):
    """A persisted refresh token issued to a user at login.

    At most one non-revoked token exists per user: issuing a new one revokes
    the previous ones. Tokens are revoked by flipping ``revoked`` and are
    physically deleted once past ``expires_at`` by the cleanup job.

    Attributes:
        id: Primary key.
        token: The signed refresh JWT, unique.
        user_id: Owning user.
        expires_at: Absolute expiry instant.
        revoked: Whether the token was revoked.
        created_at: Issue timestamp.
    """

    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_id_revoked", "user_id", "revoked"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token: str = Field(sa_column=Column(String(1024), unique=True, nullable=False))
    user_id: UUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")
    expires_at: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False))
    revoked: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )
    revoked_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at < (now or utc_now())

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return not self.revoked and not self.is_expired(now)
