"""Profile and password of the authenticated user."""

from fastapi import APIRouter

from lovedev.adapters.api.v1.auth.schemas import ChangePasswordRequest, UserOut
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.core.dependencies.auth import CurrentUser
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserOut], summary="Current user profile")
async def read_current_user(user: CurrentUser):
    """Roles, effective permissions and primary role are read from the store."""
    return ok(UserOut.from_entity(user))


@router.put("/me/password", response_model=ApiResponse[None], summary="Change the password")
async def change_password(
    payload: ChangePasswordRequest, user: CurrentUser, flow: AuthFlow, context: ClientContext
):
    await flow.change_password(
        user.id, payload.current_password, payload.new_password, context=context
    )
    return ok(message="Password changed successfully")
