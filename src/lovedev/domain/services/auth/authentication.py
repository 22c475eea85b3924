"""Authentication flow: registration, verification, login and credential recovery.

Each public operation is one unit of work: it stages its changes in the
request's session and commits once at the end, so a failure anywhere leaves
nothing half-written. Lifecycle events are published and audit entries
written only after that commit has succeeded.

Account states::

    INACTIVE (unverified) --verify_email--> ACTIVE --admin--> BANNED
                                              ^  |
                                              |  +--admin--> INACTIVE
                                              +-----admin-----+
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.config.settings import (
    DEFAULT_ROLE,
    PASSWORD_RESET_TOKEN_TTL_HOURS,
    RESEND_VERIFICATION_COOLDOWN_MINUTES,
    VERIFICATION_TOKEN_TTL_HOURS,
    settings,
)
from lovedev.core.exceptions import (
    AccountBannedError,
    AccountInactiveError,
    AlreadyVerifiedError,
    ConfigurationError,
    DuplicateEmailError,
    EmailNotVerifiedError,
    EventPublishError,
    InvalidCredentialsError,
    InvalidCurrentPasswordError,
    RefreshTokenInvalidError,
    TokenExpiredError,
    TokenInvalidError,
    TooSoonError,
    UserNotFoundError,
)
from lovedev.core.logging import mask_email
from lovedev.domain.entities.audit_log import AuditAction
from lovedev.domain.entities.user import User, UserStatus
from lovedev.domain.events.user_events import UserEvent, UserEventType
from lovedev.domain.interfaces.repositories import IRoleRepository, IUserRepository
from lovedev.domain.interfaces.services import IEventPublisher
from lovedev.domain.services.audit import AuditService
from lovedev.domain.services.auth.session import SessionManager
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.domain.services.base import commit_unit_of_work
from lovedev.domain.value_objects.identity import RequestContext
from lovedev.infrastructure.repositories.role_repository import RoleRepository
from lovedev.infrastructure.repositories.user_repository import UserRepository
from lovedev.utils.security import (
    generate_one_time_token,
    hash_password,
    hash_password_async,
    validate_password_strength,
    verify_password_async,
)

logger = get_logger(__name__)

USER_ENTITY = "User"

_dummy_hash: Optional[str] = None


def _timing_decoy_hash() -> str:
    """A real bcrypt hash checked when the email is unknown, so both failures cost the same."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(generate_one_time_token())
    return _dummy_hash


@dataclass(frozen=True)
class AuthResult:
    """Tokens handed to a client after login or refresh."""

    access_token: str
    refresh_token: str
    expires_in_ms: int
    user: User
    token_type: str = "Bearer"


class AuthenticationFlow:
    """Orchestrates the credential lifecycle of user accounts.

    Args:
        db_session: Session every operation stages its changes in.
        token_codec: Mints access tokens and supplies the clock.
        event_publisher: Receives the email lifecycle events after commit.
        audit_service: Writes audit entries after commit; optional.
        session_manager: Refresh token store; built from the session by default.
        users / roles: Repositories; built from the session by default.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        token_codec: TokenCodec,
        event_publisher: IEventPublisher,
        audit_service: Optional[AuditService] = None,
        session_manager: Optional[SessionManager] = None,
        users: Optional[IUserRepository] = None,
        roles: Optional[IRoleRepository] = None,
    ):
        self.db_session = db_session
        self.token_codec = token_codec
        self.event_publisher = event_publisher
        self.audit_service = audit_service
        self.session_manager = session_manager or SessionManager(db_session, token_codec)
        self.users = users or UserRepository(db_session)
        self.roles = roles or RoleRepository(db_session)

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        context: Optional[RequestContext] = None,
    ) -> User:
        """Create an unverified account and send the verification email.

        Raises:
            ValidationError: The password breaks the password policy.
            DuplicateEmailError: The email is already registered.
            ConfigurationError: The default role is missing from the store.
        """
        context = context or RequestContext()
        validate_password_strength(password)

        if await self.users.exists_by_email(email):
            logger.info("Registration rejected, email taken", email=mask_email(email))
            raise DuplicateEmailError()

        default_role = await self.roles.get_by_name(DEFAULT_ROLE)
        if default_role is None:
            logger.error("Default role missing from role catalog", role=DEFAULT_ROLE)
            raise ConfigurationError(f"Default role {DEFAULT_ROLE} is not configured")

        now = self.token_codec.now()
        user = User(
            email=email,
            password_hash=await hash_password_async(password),
            first_name=first_name,
            last_name=last_name,
            status=UserStatus.INACTIVE,
            email_verified=False,
            verification_token=generate_one_time_token(),
            verification_token_expires_at=now + timedelta(hours=VERIFICATION_TOKEN_TTL_HOURS),
            roles=[default_role],
        )
        await self.users.add(user)
        await commit_unit_of_work(self.db_session, DuplicateEmailError())
        logger.info("User registered", user_id=str(user.id), email=mask_email(email))

        await self._publish(self._verification_event(user, context))
        await self._audit(AuditAction.REGISTER, user.id, context, description="User registered")
        return user

    async def verify_email(self, token: str, context: Optional[RequestContext] = None) -> User:
        """Redeem an email verification token and activate the account.

        The redeemed token stays attached to the account so a second attempt
        reports that the email is already verified rather than an unknown token.

        Raises:
            TokenInvalidError: No account has this token.
            AlreadyVerifiedError: The account is already verified.
            TokenExpiredError: The token is past its expiry.
        """
        context = context or RequestContext()
        user = await self.users.get_by_verification_token(token) if token else None
        if user is None:
            raise TokenInvalidError("Invalid verification token")
        if user.email_verified:
            raise AlreadyVerifiedError()
        expires_at = user.verification_token_expires_at
        if expires_at is None or expires_at < self.token_codec.now():
            raise TokenExpiredError("Verification token has expired")

        user = await self.users.get_by_id(user.id, for_update=True)
        if user is None:
            raise TokenInvalidError("Invalid verification token")
        if user.email_verified:
            raise AlreadyVerifiedError()
        user.email_verified = True
        user.status = UserStatus.ACTIVE
        user.verification_token_expires_at = None
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        logger.info("Email verified", user_id=str(user.id))

        await self._publish(
            UserEvent(
                event_type=UserEventType.USER_WELCOME_EMAIL,
                user_id=user.id,
                source=settings.SERVICE_NAME,
                correlation_id=context.correlation_id,
                data={
                    "userId": str(user.id),
                    "email": user.email,
                    "firstName": user.first_name,
                },
            )
        )
        await self._audit(AuditAction.VERIFY_EMAIL, user.id, context, description="Email verified")
        return user

    async def resend_verification_email(
        self, email: str, context: Optional[RequestContext] = None
    ) -> None:
        """Issue a new verification token, at most once per cooldown window.

        Raises:
            UserNotFoundError: No account uses this email.
            AlreadyVerifiedError: The account is already verified.
            TooSoonError: A verification email went out less than five minutes ago.
        """
        context = context or RequestContext()
        user = await self.users.get_by_email(email, for_update=True)
        if user is None:
            raise UserNotFoundError()
        if user.email_verified:
            raise AlreadyVerifiedError()

        now = self.token_codec.now()
        expires_at = user.verification_token_expires_at
        if expires_at is not None:
            issued_at = expires_at - timedelta(hours=VERIFICATION_TOKEN_TTL_HOURS)
            if issued_at > now - timedelta(minutes=RESEND_VERIFICATION_COOLDOWN_MINUTES):
                raise TooSoonError(
                    "Please wait a few minutes before requesting another verification email"
                )

        user.verification_token = generate_one_time_token()
        user.verification_token_expires_at = now + timedelta(hours=VERIFICATION_TOKEN_TTL_HOURS)
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        logger.info("Verification email re-issued", user_id=str(user.id))

        await self._publish(self._verification_event(user, context))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(
        self, email: str, password: str, context: Optional[RequestContext] = None
    ) -> AuthResult:
        """Authenticate with email and password and open a new session.

        The user row is locked for the duration of the transaction so that
        concurrent logins of one user serialize on the refresh token swap.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            EmailNotVerifiedError: The email has not been verified yet.
            AccountBannedError: The account is banned.
            AccountInactiveError: The account was deactivated by an administrator.
        """
        context = context or RequestContext()
        user = await self.users.get_by_email(email, for_update=True)
        if user is None:
            await verify_password_async(password, _timing_decoy_hash())
            logger.info("Login failed", email=mask_email(email), reason="unknown_email")
            raise InvalidCredentialsError()
        if not await verify_password_async(password, user.password_hash):
            logger.info("Login failed", user_id=str(user.id), reason="bad_password")
            raise InvalidCredentialsError()
        if not user.email_verified:
            raise EmailNotVerifiedError()
        if user.is_banned:
            raise AccountBannedError()
        if user.status != UserStatus.ACTIVE:
            raise AccountInactiveError()

        access_token = self.token_codec.issue_access_token(user.id, user.role_names)
        refresh_token = await self.session_manager.create(user)
        user.last_login_at = self.token_codec.now()
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        logger.info("User logged in", user_id=str(user.id))

        await self._audit(AuditAction.LOGIN, user.id, context, description="User logged in")
        return AuthResult(
            access_token=access_token,
            refresh_token=refresh_token.token,
            expires_in_ms=self.token_codec.access_token_ttl_ms,
            user=user,
        )

    async def refresh(self, refresh_token: str) -> AuthResult:
        """Mint a new access token from a usable refresh token.

        Roles are read from the store now, so role changes since login take
        effect. The refresh token itself is returned unchanged.

        Raises:
            RefreshTokenInvalidError: Unknown token, or its user no longer exists.
            RefreshTokenExpiredOrRevokedError: The token was revoked or has expired.
        """
        stored = await self.session_manager.verify(refresh_token)
        user = await self.users.get_by_id(stored.user_id)
        if user is None:
            raise RefreshTokenInvalidError()

        access_token = self.token_codec.issue_access_token(user.id, user.role_names)
        logger.info("Access token refreshed", user_id=str(user.id))
        return AuthResult(
            access_token=access_token,
            refresh_token=stored.token,
            expires_in_ms=self.token_codec.access_token_ttl_ms,
            user=user,
        )

    async def logout(self, refresh_token: str, context: Optional[RequestContext] = None) -> None:
        """Revoke the refresh token. Always succeeds, whatever the token's state."""
        context = context or RequestContext()
        stored = await self.session_manager.revoke(refresh_token)
        await commit_unit_of_work(self.db_session)
        if stored is not None:
            await self._audit(
                AuditAction.LOGOUT, stored.user_id, context, description="User logged out"
            )

    # ------------------------------------------------------------------
    # Password recovery
    # ------------------------------------------------------------------

    async def forgot_password(self, email: str, context: Optional[RequestContext] = None) -> None:
        """Issue a one-hour password reset token and email it.

        Raises:
            UserNotFoundError: No account uses this email.
        """
        context = context or RequestContext()
        user = await self.users.get_by_email(email, for_update=True)
        if user is None:
            raise UserNotFoundError()

        user.reset_password_token = generate_one_time_token()
        user.reset_password_token_expires_at = self.token_codec.now() + timedelta(
            hours=PASSWORD_RESET_TOKEN_TTL_HOURS
        )
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        logger.info("Password reset requested", user_id=str(user.id))

        await self._publish(
            UserEvent(
                event_type=UserEventType.USER_RESET_PASSWORD,
                user_id=user.id,
                source=settings.SERVICE_NAME,
                correlation_id=context.correlation_id,
                data={
                    "userId": str(user.id),
                    "email": user.email,
                    "firstName": user.first_name,
                    "token": user.reset_password_token,
                },
            )
        )

    async def reset_password(
        self, token: str, new_password: str, context: Optional[RequestContext] = None
    ) -> None:
        """Set a new password and end every session of the user.

        The password change and the revocation of all refresh tokens commit
        together.

        Raises:
            ValidationError: The new password breaks the password policy.
            TokenInvalidError: No account has this reset token.
            TokenExpiredError: The reset token is past its expiry.
        """
        context = context or RequestContext()
        validate_password_strength(new_password, field="newPassword")

        user = await self.users.get_by_reset_token(token, for_update=True) if token else None
        if user is None:
            raise TokenInvalidError("Invalid reset token")
        expires_at = user.reset_password_token_expires_at
        if expires_at is None or expires_at < self.token_codec.now():
            raise TokenExpiredError("Reset token has expired")

        user.password_hash = await hash_password_async(new_password)
        user.reset_password_token = None
        user.reset_password_token_expires_at = None
        await self.users.add(user)
        await self.session_manager.revoke_all(user.id)
        await commit_unit_of_work(self.db_session)
        logger.info("Password reset completed", user_id=str(user.id))

        await self._audit(AuditAction.RESET_PASSWORD, user.id, context, description="Password reset")

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Replace the password of a signed-in user after checking the current one.

        Open sessions are left as they are.

        Raises:
            ValidationError: The new password breaks the password policy.
            UserNotFoundError: The account no longer exists.
            InvalidCurrentPasswordError: ``current_password`` does not match.
        """
        context = context or RequestContext()
        validate_password_strength(new_password, field="newPassword")

        user = await self.users.get_by_id(user_id, for_update=True)
        if user is None:
            raise UserNotFoundError()
        if not await verify_password_async(current_password, user.password_hash):
            logger.info("Password change refused", user_id=str(user.id), reason="bad_password")
            raise InvalidCurrentPasswordError()

        user.password_hash = await hash_password_async(new_password)
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        logger.info("Password changed", user_id=str(user.id))

        await self._audit(AuditAction.UPDATE, user.id, context, description="Password changed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _verification_event(self, user: User, context: RequestContext) -> UserEvent:
        return UserEvent(
            event_type=UserEventType.USER_VERIFY_EMAIL,
            user_id=user.id,
            source=settings.SERVICE_NAME,
            correlation_id=context.correlation_id,
            data={
                "userId": str(user.id),
                "email": user.email,
                "firstName": user.first_name,
                "verificationToken": user.verification_token,
            },
        )

    async def _publish(self, event: UserEvent) -> None:
        # State is already committed; resend-verification and forgot-password re-issue lost events.
        try:
            await self.event_publisher.publish(event)
        except EventPublishError as e:
            logger.error(
                "Event not delivered",
                event_type=event.event_type.value,
                user_id=str(event.user_id),
                error=str(e),
            )

    async def _audit(
        self,
        action: AuditAction,
        user_id,
        context: RequestContext,
        description: Optional[str] = None,
    ) -> None:
        if self.audit_service is None:
            return
        await self.audit_service.log_action(
            action=action,
            entity_type=USER_ENTITY,
            entity_id=user_id,
            user_id=user_id,
            description=description,
            context=context,
        )
