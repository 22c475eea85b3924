"""Authentication and authorization settings.
"""

import logging

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# HS256 keys shorter than this are rejected at startup
MIN_JWT_SECRET_BYTES = 32


class AuthSettings(BaseSettings):
    """Defines settings for token signing, session lifetimes and credential endpoints.

    Security Note:
        - JWT_SECRET signs every access, refresh and service token. It must be
          at least 32 bytes and must never appear in logs or version control.
        - Rotating the secret invalidates all outstanding tokens.
    """

    JWT_SECRET: SecretStr = SecretStr("")
    JWT_ISSUER: str = "lovedev-api"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, default=15)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(ge=1, default=7)

    # Background sweep of expired refresh tokens
    TOKEN_CLEANUP_ENABLED: bool = True
    TOKEN_CLEANUP_INTERVAL_HOURS: float = Field(gt=0, default=24)

    # slowapi limits for the credential endpoints
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "20/minute"
    RATE_LIMIT_STORAGE_URL: str = "memory://"

    @model_validator(mode="after")
    def _validate_jwt_secret(self) -> "AuthSettings":
        """Refuses to build settings with a missing or short signing secret.

        Returns:
            Self instance once the secret has been validated.
        """
        secret = self.JWT_SECRET.get_secret_value()
        if len(secret.encode("utf-8")) < MIN_JWT_SECRET_BYTES:
            error_msg = (
                f"JWT_SECRET must be at least {MIN_JWT_SECRET_BYTES} bytes long; "
                "refusing to start with a weak signing key."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)
        return self
