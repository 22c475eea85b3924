from .repositories import (
    IAuditLogRepository,
    IPermissionRepository,
    IRefreshTokenRepository,
    IRoleRepository,
    IUserRepository,
)
from .services import IEventPublisher

__all__ = [
    "IAuditLogRepository",
    "IEventPublisher",
    "IPermissionRepository",
    "IRefreshTokenRepository",
    "IRoleRepository",
    "IUserRepository",
]
