"""Registration endpoint.

Creates an unverified account and triggers the verification email. No tokens
are issued here: an account must verify its email before it can log in.
"""

import structlog
from fastapi import APIRouter, Request, status

from lovedev.adapters.api.v1.auth.schemas import RegisterRequest, UserOut
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.config.settings import settings
from lovedev.core.logging import mask_email
from lovedev.core.ratelimiter import limiter
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[UserOut],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description=(
        "Creates an INACTIVE account holding ROLE_USER and emails a verification "
        "link valid for 24 hours."
    ),
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register_user(
    request: Request,
    payload: RegisterRequest,
    flow: AuthFlow,
    context: ClientContext,
):
    logger.info("registration_requested", email=mask_email(payload.email))
    user = await flow.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        context=context,
    )
    return ok(
        UserOut.from_entity(user),
        "Registration successful. Please check your email to verify your account.",
    )
