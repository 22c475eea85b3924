"""Login endpoint.

Exchanges email and password for an access token and a refresh token. Any
refresh token the user held before is revoked, so one login session is
active per user at a time.
"""

import structlog
from fastapi import APIRouter, Request

from lovedev.adapters.api.v1.auth.schemas import AuthResponse, LoginRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.config.settings import settings
from lovedev.core.ratelimiter import limiter
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[AuthResponse],
    summary="Authenticate a user",
    description=(
        "Unknown email and wrong password produce the same 401 response. "
        "Unverified accounts get 403 email_not_verified, banned ones 403 account_banned."
    ),
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login_user(
    request: Request,
    payload: LoginRequest,
    flow: AuthFlow,
    context: ClientContext,
):
    result = await flow.login(payload.email, payload.password, context=context)
    return ok(AuthResponse.from_result(result), "Login successful")
