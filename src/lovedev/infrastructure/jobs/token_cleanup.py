"""Scheduled purge of expired refresh tokens.

The application lifespan starts :func:`run_token_cleanup` as a background
task; each pass opens its own session so it never shares a transaction with
request handling.
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from lovedev.domain.services.auth.session import SessionManager
from lovedev.domain.services.auth.token import TokenCodec

logger = get_logger(__name__)


async def purge_expired_refresh_tokens(
    session_factory: async_sessionmaker[AsyncSession], token_codec: TokenCodec
) -> int:
    """Delete every refresh token past its expiry and return how many went."""
    async with session_factory() as session:
        count = await SessionManager(session, token_codec).cleanup_expired()
        await session.commit()
    return count


async def run_token_cleanup(
    session_factory: async_sessionmaker[AsyncSession],
    token_codec: TokenCodec,
    interval_seconds: float,
) -> None:
    """Purge expired refresh tokens every ``interval_seconds`` until cancelled.

    A failed pass is logged and retried on the next tick.
    """
    logger.info("token_cleanup_started", interval_seconds=interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await purge_expired_refresh_tokens(session_factory, token_codec)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error("token_cleanup_failed", error=str(e))
