"""Rate limiting for the credential endpoints.

Routes opt in with ``@limiter.limit(settings.AUTH_RATE_LIMIT)``; the limiter
keys on the client address and is switched off entirely when
``RATE_LIMIT_ENABLED`` is false.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from lovedev.core.config.settings import settings


def get_limiter() -> Limiter:
    """Factory for the slowapi limiter, evaluated once at import time."""
    return Limiter(
        key_func=get_remote_address,
        enabled=settings.RATE_LIMIT_ENABLED,
        storage_uri=settings.RATE_LIMIT_STORAGE_URL,
    )


limiter = get_limiter()
