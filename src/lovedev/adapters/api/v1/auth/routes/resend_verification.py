"""Resend-verification endpoint."""

from fastapi import APIRouter, Request

from lovedev.adapters.api.v1.auth.schemas import ResendVerificationRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.config.settings import settings
from lovedev.core.ratelimiter import limiter
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[None],
    summary="Send a new verification email",
    description="Issues a fresh 24 hour verification token; at most once every five minutes.",
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def resend_verification(
    request: Request,
    payload: ResendVerificationRequest,
    flow: AuthFlow,
    context: ClientContext,
):
    await flow.resend_verification_email(payload.email, context=context)
    return ok(message="Verification email sent")
