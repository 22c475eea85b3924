"""Subpackage aggregating individual auth route modules."""

__all__ = [
    "register",
    "verify_email",
    "resend_verification",
    "login",
    "refresh",
    "logout",
    "forgot_password",
    "reset_password",
]
