"""Email verification endpoint, the target of the link in the verification email."""

from fastapi import APIRouter, Query

from lovedev.adapters.api.v1.auth.schemas import UserOut
from lovedev.adapters.api.v1.schemas import ApiResponse, ok
from lovedev.infrastructure.dependency_injection.auth_dependencies import AuthFlow, ClientContext

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[UserOut],
    summary="Verify an email address",
)
async def verify_email(
    flow: AuthFlow,
    context: ClientContext,
    token: str = Query(..., min_length=1),
):
    """Activate the account owning ``token``."""
    user = await flow.verify_email(token, context=context)
    return ok(UserOut.from_entity(user), "Email verified successfully")
