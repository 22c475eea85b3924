"""Signing and verification of bearer tokens.

`TokenCodec` mints three token kinds with one HMAC-SHA256 key:

- access tokens: ``sub`` (user id), ``roles`` (comma-joined ``ROLE_*`` names),
  ``iss``, ``iat``, ``exp``;
- refresh token values: ``sub``, ``iss``, ``iat``, ``exp``, ``type=REFRESH`` and a
  random ``jti`` so two values minted in the same second never collide in the store;
- service tokens: ``sub`` (service name), ``type=SERVICE``, five minute expiry.

Validation is boolean: malformed, tampered, foreign-issuer and expired tokens
all read as "invalid" so callers cannot learn why a token was rejected.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from uuid import UUID

from jwt import PyJWTError
from jwt import decode as jwt_decode
from jwt import encode as jwt_encode
from structlog import get_logger

from lovedev.core.config.auth import MIN_JWT_SECRET_BYTES
from lovedev.core.config.settings import SERVICE_TOKEN_TTL_MINUTES, settings
from lovedev.core.exceptions import ConfigurationError, TokenInvalidError
from lovedev.domain.value_objects.identity import normalize_role

logger = get_logger(__name__)

ALGORITHM = "HS256"
ROLES_CLAIM = "roles"
TYPE_CLAIM = "type"
SERVICE_TOKEN_TYPE = "SERVICE"
REFRESH_TOKEN_TYPE = "REFRESH"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Stateless minting and verification of signed, expiring tokens.

    Args:
        secret: HMAC key, at least 32 bytes. Defaults to ``JWT_SECRET``.
        issuer: ``iss`` claim written and required. Defaults to ``JWT_ISSUER``.
        access_token_ttl: Lifetime of access tokens.
        refresh_token_ttl: Lifetime of refresh token values.
        clock: Returns the current UTC time; injectable for tests.

    Raises:
        ConfigurationError: If the secret is missing or shorter than 256 bits.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        issuer: Optional[str] = None,
        access_token_ttl: Optional[timedelta] = None,
        refresh_token_ttl: Optional[timedelta] = None,
        clock: Optional[Clock] = None,
    ):
        secret = secret if secret is not None else settings.JWT_SECRET.get_secret_value()
        if not secret or len(secret.encode("utf-8")) < MIN_JWT_SECRET_BYTES:
            raise ConfigurationError(
                f"Token signing secret must be at least {MIN_JWT_SECRET_BYTES} bytes"
            )
        self._secret = secret
        self.issuer = issuer or settings.JWT_ISSUER
        self.access_token_ttl = (
            access_token_ttl
            if access_token_ttl is not None
            else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        self.refresh_token_ttl = (
            refresh_token_ttl
            if refresh_token_ttl is not None
            else timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        )
        self.service_token_ttl = timedelta(minutes=SERVICE_TOKEN_TTL_MINUTES)
        self._clock = clock or _utc_now

    def now(self) -> datetime:
        return self._clock()

    @property
    def access_token_ttl_ms(self) -> int:
        return int(self.access_token_ttl.total_seconds() * 1000)

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def _sign(self, subject: str, ttl: timedelta, extra: Optional[Dict[str, Any]] = None) -> str:
        issued_at = self.now()
        payload: Dict[str, Any] = {
            "sub": subject,
            "iss": self.issuer,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        if extra:
            payload.update(extra)
        return jwt_encode(payload, self._secret, algorithm=ALGORITHM)

    def issue_access_token(self, subject_id: Union[UUID, str], roles: Iterable[str]) -> str:
        """Mint an access token carrying the subject and its role names.

        The same secret, claims and clock always produce the same token.
        """
        role_claim = ",".join(normalize_role(role) for role in roles if role and role.strip())
        token = self._sign(str(subject_id), self.access_token_ttl, {ROLES_CLAIM: role_claim})
        logger.debug("Access token issued", subject=str(subject_id))
        return token

    def issue_refresh_token_value(self, subject_id: Union[UUID, str]) -> str:
        """Mint the value of a refresh token; the store decides whether it is usable."""
        return self._sign(
            str(subject_id),
            self.refresh_token_ttl,
            {"jti": uuid.uuid4().hex, TYPE_CLAIM: REFRESH_TOKEN_TYPE},
        )

    def issue_service_token(self, service_name: str) -> str:
        """Mint a short-lived token identifying a calling backend service."""
        token = self._sign(service_name, self.service_token_ttl, {TYPE_CLAIM: SERVICE_TOKEN_TYPE})
        logger.debug("Service token issued", service=service_name)
        return token

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def _decode(self, token: str) -> Dict[str, Any]:
        # Expiry is compared against the codec's own clock below, not PyJWT's.
        return jwt_decode(
            token,
            self._secret,
            algorithms=[ALGORITHM],
            issuer=self.issuer,
            options={
                "require": ["sub", "iss", "iat", "exp"],
                "verify_exp": False,
                "verify_iat": False,
            },
        )

    def validate(self, token: Optional[str]) -> bool:
        """Check signature, issuer and expiry; never raises."""
        if not token:
            return False
        try:
            claims = self._decode(token)
            return int(claims["exp"]) > self.now().timestamp()
        except (PyJWTError, TypeError, ValueError, KeyError) as e:
            logger.debug("Token rejected", reason=type(e).__name__)
            return False

    def claims(self, token: str) -> Dict[str, Any]:
        """Decoded claims of a signature-checked token.

        Raises:
            TokenInvalidError: If the token cannot be decoded.
        """
        try:
            return self._decode(token)
        except PyJWTError as e:
            raise TokenInvalidError("Invalid token") from e

    def extract_subject(self, token: str) -> str:
        return str(self.claims(token)["sub"])

    def extract_roles(self, token: str) -> List[str]:
        raw = self.claims(token).get(ROLES_CLAIM) or ""
        return [role.strip() for role in str(raw).split(",") if role.strip()]

    def is_service_token(self, token: str) -> bool:
        return self.claims(token).get(TYPE_CLAIM) == SERVICE_TOKEN_TYPE

    def is_refresh_token(self, token: str) -> bool:
        return self.claims(token).get(TYPE_CLAIM) == REFRESH_TOKEN_TYPE
