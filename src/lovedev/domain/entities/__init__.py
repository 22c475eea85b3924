"""SQLModel tables for the authentication and RBAC domain.

Importing this package registers every table on ``SQLModel.metadata``.
"""

from .audit_log import AuditAction, AuditLog
from .refresh_token import RefreshToken
from .role import Permission, Role, RolePermission
from .user import User, UserRole, UserStatus

__all__ = [
    "AuditAction",
    "AuditLog",
    "Permission",
    "RefreshToken",
    "Role",
    "RolePermission",
    "User",
    "UserRole",
    "UserStatus",
]
