from __future__ import annotations

"""Centralized, structured exception hierarchy for the LoveDev auth service.

Every error raised by the domain carries a machine-readable `code` for
programmatic handling and a human-readable `message` that is safe to return
to API clients. The hierarchy is grouped by the HTTP status family each
branch maps to in `lovedev.core.handlers`.
"""

from dataclasses import dataclass
from typing import Any, Final, List, Optional

__all__: Final = [
    "LoveDevError",
    "ConflictError",
    "DuplicateEmailError",
    "ConcurrentUpdateError",
    "NotFoundError",
    "UserNotFoundError",
    "RoleNotFoundError",
    "PermissionNotFoundError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenInvalidError",
    "TokenExpiredError",
    "RefreshTokenInvalidError",
    "RefreshTokenExpiredOrRevokedError",
    "UnauthorizedError",
    "AccountStateError",
    "EmailNotVerifiedError",
    "AccountBannedError",
    "AccountInactiveError",
    "PermissionDeniedError",
    "BusinessRuleError",
    "AlreadyVerifiedError",
    "RoleAssignmentError",
    "ProtectedRoleError",
    "InvalidCurrentPasswordError",
    "FieldError",
    "ValidationError",
    "TooSoonError",
    "ConfigurationError",
    "EventPublishError",
]


class LoveDevError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable error message.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Conflicts (409)
# ---------------------------------------------------------------------------


class ConflictError(LoveDevError):
    """Raised when the request clashes with existing state."""

    def __init__(self, message: str, code: str = "conflict"):
        super().__init__(message, code)


class DuplicateEmailError(ConflictError):
    """Raised when registering an email that already belongs to an account."""

    def __init__(self, message: str = "Email already exists", code: str = "email_already_exists"):
        super().__init__(message, code)


class ConcurrentUpdateError(ConflictError):
    """Raised when a concurrent writer won a uniqueness race."""

    def __init__(
        self,
        message: str = "The resource was modified concurrently, please retry",
        code: str = "concurrent_update",
    ):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Missing resources (404)
# ---------------------------------------------------------------------------


class NotFoundError(LoveDevError):
    """Raised when a referenced resource does not exist."""

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found", code: str = "user_not_found"):
        super().__init__(message, code)


class RoleNotFoundError(NotFoundError):
    def __init__(self, message: str = "Role not found", code: str = "role_not_found"):
        super().__init__(message, code)


class PermissionNotFoundError(NotFoundError):
    def __init__(self, message: str = "Permission not found", code: str = "permission_not_found"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Authentication failures (401)
# ---------------------------------------------------------------------------


class AuthenticationError(LoveDevError):
    """Raised for general authentication failures.

    This exception is the base for more specific authentication-related
    errors and maps to a `401 Unauthorized` HTTP status code.
    """

    def __init__(self, message: str, code: str = "authentication_error"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email is unknown or the password does not match.

    Both cases share one message so callers cannot probe which emails exist.
    """

    def __init__(
        self, message: str = "Invalid email or password", code: str = "invalid_credentials"
    ):
        super().__init__(message, code)


class TokenInvalidError(AuthenticationError):
    """Raised for an unknown verification or password-reset token."""

    def __init__(self, message: str = "Invalid token", code: str = "token_invalid"):
        super().__init__(message, code)


class TokenExpiredError(AuthenticationError):
    """Raised for a verification or password-reset token past its expiry."""

    def __init__(self, message: str = "Token has expired", code: str = "token_expired"):
        super().__init__(message, code)


class RefreshTokenInvalidError(AuthenticationError):
    def __init__(
        self, message: str = "Invalid refresh token", code: str = "refresh_token_invalid"
    ):
        super().__init__(message, code)


class RefreshTokenExpiredOrRevokedError(AuthenticationError):
    def __init__(
        self,
        message: str = "Refresh token is expired or revoked",
        code: str = "refresh_token_expired_or_revoked",
    ):
        super().__init__(message, code)


class UnauthorizedError(AuthenticationError):
    """Raised by route guards when the request carries no valid identity."""

    def __init__(self, message: str = "Authentication required", code: str = "unauthorized"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Authenticated but refused (403)
# ---------------------------------------------------------------------------


class AccountStateError(LoveDevError):
    """Raised when the account status forbids the operation."""

    def __init__(self, message: str, code: str = "account_state"):
        super().__init__(message, code)


class EmailNotVerifiedError(AccountStateError):
    def __init__(
        self,
        message: str = "Please verify your email before logging in",
        code: str = "email_not_verified",
    ):
        super().__init__(message, code)


class AccountBannedError(AccountStateError):
    def __init__(self, message: str = "Your account has been banned", code: str = "account_banned"):
        super().__init__(message, code)


class AccountInactiveError(AccountStateError):
    def __init__(self, message: str = "Account is not active", code: str = "account_inactive"):
        super().__init__(message, code)


class PermissionDeniedError(LoveDevError):
    """Raised when an authenticated caller lacks the required role or permission."""

    def __init__(self, message: str = "Access denied", code: str = "permission_denied"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Business rules and validation (400)
# ---------------------------------------------------------------------------


class BusinessRuleError(LoveDevError):
    """Raised when a well-formed request violates a domain rule."""

    def __init__(self, message: str, code: str = "business_rule_violation"):
        super().__init__(message, code)


class AlreadyVerifiedError(BusinessRuleError):
    def __init__(self, message: str = "Email already verified", code: str = "already_verified"):
        super().__init__(message, code)


class RoleAssignmentError(BusinessRuleError):
    """Raised for invalid role changes such as removing a user's last role."""

    def __init__(self, message: str, code: str = "role_assignment_error"):
        super().__init__(message, code)


class ProtectedRoleError(BusinessRuleError):
    """Raised when deleting a system role or a role still assigned to users."""

    def __init__(self, message: str, code: str = "protected_role"):
        super().__init__(message, code)


class InvalidCurrentPasswordError(BusinessRuleError):
    """Raised when a password change does not prove the current password."""

    def __init__(
        self,
        message: str = "Current password is incorrect",
        code: str = "invalid_current_password",
    ):
        super().__init__(message, code)


@dataclass(frozen=True, slots=True)
class FieldError:
    """Describes one rejected input field."""

    field: str
    message: str
    rejected_value: Any = None


class ValidationError(LoveDevError):
    """Raised when input fails domain validation (e.g. password policy)."""

    def __init__(
        self,
        message: str = "Validation failed",
        code: str = "validation_error",
        field_errors: Optional[List[FieldError]] = None,
    ):
        super().__init__(message, code)
        self.field_errors = list(field_errors or [])


# ---------------------------------------------------------------------------
# Throttling (429)
# ---------------------------------------------------------------------------


class TooSoonError(LoveDevError):
    """Raised when an action is repeated before its cooldown has elapsed."""

    def __init__(self, message: str, code: str = "too_soon"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Internal failures (500)
# ---------------------------------------------------------------------------


class ConfigurationError(LoveDevError):
    """Raised when the service is started or wired with invalid configuration."""

    def __init__(self, message: str, code: str = "configuration_error"):
        super().__init__(message, code)


class EventPublishError(LoveDevError):
    """Raised by event publishers when the bus rejects an event."""

    def __init__(self, message: str, code: str = "event_publish_error"):
        super().__init__(message, code)
