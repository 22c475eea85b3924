from fastapi import APIRouter

from .roles import router as roles_router
from .users import router as users_router

router = APIRouter(prefix="/admin")

router.include_router(users_router, prefix="/users", tags=["admin", "users"])
router.include_router(roles_router, tags=["admin", "roles"])

__all__ = ["router"]
