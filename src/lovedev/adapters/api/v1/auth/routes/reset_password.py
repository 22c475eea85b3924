"""Reset-password endpoint.

Setting the new password also revokes every refresh token of the account, so
all existing sessions end with the reset.
"""

from fastapi import APIRouter

from lovedev.adapters.api.v1.auth.schemas import ResetPasswordRequest
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.post("", response_model=ApiResponse[None], summary="Reset the password with a token")
async def reset_password(payload: ResetPasswordRequest, flow: AuthFlow, context: ClientContext):
    await flow.reset_password(payload.token, payload.new_password, context=context)
    return ok(message="Password reset successfully")
