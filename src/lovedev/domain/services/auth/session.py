"""Refresh token lifecycle.

A user holds at most one usable refresh token: :meth:`SessionManager.create`
revokes every earlier token in the same transaction that stores the new one.
Methods stage their changes in the caller's session and never commit, so the
calling flow decides the transaction boundary.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.exceptions import RefreshTokenExpiredOrRevokedError, RefreshTokenInvalidError
from lovedev.domain.entities.refresh_token import RefreshToken
from lovedev.domain.entities.user import User
from lovedev.domain.interfaces.repositories import IRefreshTokenRepository
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.infrastructure.repositories.refresh_token_repository import RefreshTokenRepository

logger = get_logger(__name__)


class SessionManager:
    """Creates, verifies, revokes and purges persisted refresh tokens.

    Attributes:
        db_session: Session the changes are staged in.
        token_codec: Mints refresh token values and provides the clock.
        refresh_tokens: Refresh token repository.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        token_codec: TokenCodec,
        refresh_tokens: Optional[IRefreshTokenRepository] = None,
    ):
        self.db_session = db_session
        self.token_codec = token_codec
        self.refresh_tokens = refresh_tokens or RefreshTokenRepository(db_session)

    async def create(self, user: User) -> RefreshToken:
        """Revoke the user's outstanding tokens and stage a fresh one.

        Callers that must serialize concurrent logins lock the user row
        before calling this.
        """
        now = self.token_codec.now()
        revoked = await self.refresh_tokens.revoke_all_for_user(user.id, now)
        token = RefreshToken(
            token=self.token_codec.issue_refresh_token_value(user.id),
            user_id=user.id,
            expires_at=now + self.token_codec.refresh_token_ttl,
        )
        await self.refresh_tokens.add(token)
        logger.info("Refresh token created", user_id=str(user.id), revoked_previous=revoked)
        return token

    async def verify(self, value: str) -> RefreshToken:
        """Return the stored token for ``value`` if it is still usable.

        Raises:
            RefreshTokenInvalidError: No token with this value exists.
            RefreshTokenExpiredOrRevokedError: The token was revoked or has expired.
        """
        token = await self.refresh_tokens.get_by_token(value) if value else None
        if token is None:
            logger.warning("Unknown refresh token presented")
            raise RefreshTokenInvalidError()
        if not token.is_usable(self.token_codec.now()):
            logger.warning(
                "Expired or revoked refresh token presented",
                user_id=str(token.user_id),
                revoked=token.revoked,
            )
            raise RefreshTokenExpiredOrRevokedError()
        return token

    async def revoke(self, value: str) -> Optional[RefreshToken]:
        """Revoke the token if it exists; unknown or already revoked tokens are a no-op."""
        token = await self.refresh_tokens.get_by_token(value) if value else None
        if token is None:
            logger.debug("Revocation of unknown refresh token ignored")
            return None
        if not token.revoked:
            token.revoked = True
            token.revoked_at = self.token_codec.now()
            await self.refresh_tokens.add(token)
            logger.info("Refresh token revoked", user_id=str(token.user_id))
        return token

    async def revoke_all(self, user_id: UUID) -> int:
        count = await self.refresh_tokens.revoke_all_for_user(user_id, self.token_codec.now())
        logger.info("All refresh tokens revoked", user_id=str(user_id), count=count)
        return count

    async def cleanup_expired(self) -> int:
        """Delete every token past its expiry, revoked or not."""
        count = await self.refresh_tokens.delete_expired(self.token_codec.now())
        logger.info("Expired refresh tokens purged", count=count)
        return count
