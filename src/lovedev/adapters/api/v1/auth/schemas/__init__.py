from __future__ import annotations

"""Authentication API schemas package."""

# flake8: noqa: F401

from .requests import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
)
from .responses import AuthResponse, UserOut

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ForgotPasswordRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "UserOut",
    "AuthResponse",
]
