"""Forgot-password endpoint: emails a one-hour password reset token."""

from fastapi import APIRouter, Request

from lovedev.adapters.api.v1.auth.schemas import ForgotPasswordRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.config.settings import settings
from lovedev.core.ratelimiter import limiter
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.post("", response_model=ApiResponse[None], summary="Request a password reset")
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    flow: AuthFlow,
    context: ClientContext,
):
    await flow.forgot_password(payload.email, context=context)
    return ok(message="Password reset email sent")
