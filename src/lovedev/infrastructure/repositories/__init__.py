from .audit_log_repository import AuditLogRepository
from .refresh_token_repository import RefreshTokenRepository
from .role_repository import PermissionRepository, RoleRepository
from .user_repository import UserRepository

__all__ = [
    "AuditLogRepository",
    "PermissionRepository",
    "RefreshTokenRepository",
    "RoleRepository",
    "UserRepository",
]
