from __future__ import annotations

"""Request-payload Pydantic models for authentication endpoints.

Password strength is enforced by the domain so every caller gets the same
field-level policy errors; the bounds here only reject absurd input early.
"""

from pydantic import EmailStr, Field

from lovedev.adapters.api.v1.schemas import CamelModel

# ---------------------------------------------------------------------------
# Concrete request models ----------------------------------------------------
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    """Payload expected by ``POST /auth/register``."""

    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=256, examples=["Str0ngP@ss"])
    first_name: str = Field(..., min_length=1, max_length=50, examples=["Jane"])
    last_name: str = Field(..., min_length=1, max_length=50, examples=["Doe"])


class LoginRequest(CamelModel):
    """Payload expected by ``POST /auth/login``."""

    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=256)


class RefreshTokenRequest(CamelModel):
    """Payload expected by ``POST /auth/refresh`` and ``POST /auth/logout``."""

    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr = Field(..., examples=["jane@example.com"])


class ResendVerificationRequest(CamelModel):
    email: EmailStr = Field(..., examples=["jane@example.com"])


class ResetPasswordRequest(CamelModel):
    """Payload expected by ``POST /auth/reset-password``."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=256, examples=["N3wP@ssword"])


class ChangePasswordRequest(CamelModel):
    """Payload expected by ``PUT /users/me/password``."""

    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256, examples=["N3wP@ssword"])
