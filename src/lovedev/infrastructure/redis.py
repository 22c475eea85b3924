"""
Redis Connection Module

Builds the asynchronous Redis client that backs the event bus.

**Security Note**: Use a ``rediss://`` REDIS_URL with a password outside trusted
networks. The URL is never logged.
"""

from redis.asyncio import Redis
from structlog import get_logger

from lovedev.core.config.settings import settings

logger = get_logger(__name__)


def create_redis_client(url: str | None = None) -> Redis:
    """Create an asynchronous Redis client with bounded socket timeouts.

    Creating the client does not open a connection; the first command does.
    """
    client = Redis.from_url(
        url or settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
    )
    logger.debug("Redis client created")
    return client
