"""Refresh endpoint: a new access token for a usable refresh token."""

from fastapi import APIRouter

from lovedev.adapters.api.v1.auth.schemas import AuthResponse, RefreshTokenRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[AuthResponse],
    summary="Refresh the access token",
    description="The refresh token is returned unchanged; roles are re-read from the store.",
)
async def refresh_token(payload: RefreshTokenRequest, flow: AuthFlow):
    result = await flow.refresh(payload.refresh_token)
    return ok(AuthResponse.from_result(result), "Token refreshed")
