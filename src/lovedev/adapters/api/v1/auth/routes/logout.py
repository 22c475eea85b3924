"""Logout endpoint. Revoking an unknown or already revoked token still succeeds."""

from fastapi import APIRouter

from lovedev.adapters.api.v1.auth.schemas import RefreshTokenRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.post("", response_model=ApiResponse[None], summary="Log out")
async def logout_user(payload: RefreshTokenRequest, flow: AuthFlow, context: ClientContext):
    await flow.logout(payload.refresh_token, context=context)
    return ok(message="Logged out successfully")
