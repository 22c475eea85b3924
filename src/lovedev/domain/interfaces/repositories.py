"""Repository interfaces for abstracting data persistence in the domain layer.

The domain services talk to these ports; the SQLAlchemy adapters live in
``lovedev.infrastructure.repositories``. Repositories never commit: they add,
flush and query inside the caller's session so that each domain operation
commits exactly once as a unit of work.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from lovedev.domain.entities.audit_log import AuditLog
from lovedev.domain.entities.refresh_token import RefreshToken
from lovedev.domain.entities.role import Permission, Role
from lovedev.domain.entities.user import User


class IUserRepository(ABC):
    """Persistence port for the `User` aggregate root.

    Lookups exclude soft-deleted users unless stated otherwise.
    """

    @abstractmethod
    async def get_by_id(self, user_id: UUID, *, for_update: bool = False) -> Optional[User]:
        """Retrieves a user by id.

        Args:
            user_id: The user's id.
            for_update: Take a row lock serializing concurrent writers on this user.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str, *, for_update: bool = False) -> Optional[User]:
        """Retrieves a user by exact email match."""
        raise NotImplementedError

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """Whether any row, deleted or not, already uses ``email``."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_verification_token(self, token: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_reset_token(self, token: str, *, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, user: User) -> User:
        """Stages a new or modified user and flushes it."""
        raise NotImplementedError


class IRoleRepository(ABC):
    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Role]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_names(self, names: Sequence[str]) -> List[Role]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> List[Role]:
        raise NotImplementedError

    @abstractmethod
    async def count_users(self, role_id: UUID) -> int:
        """Number of non-deleted users holding the role."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, role: Role) -> Role:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, role: Role) -> None:
        raise NotImplementedError


class IPermissionRepository(ABC):
    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Permission]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_names(self, names: Sequence[str]) -> List[Permission]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_resource_action(self, resource: str, action: str) -> Optional[Permission]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> List[Permission]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, permission: Permission) -> Permission:
        raise NotImplementedError


class IRefreshTokenRepository(ABC):
    @abstractmethod
    async def add(self, token: RefreshToken) -> RefreshToken:
        raise NotImplementedError

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        raise NotImplementedError

    @abstractmethod
    async def revoke_all_for_user(self, user_id: UUID, revoked_at: datetime) -> int:
        """Revokes every non-revoked token of the user and returns how many changed."""
        raise NotImplementedError

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Deletes tokens whose expiry is before ``now`` and returns the count."""
        raise NotImplementedError


class IAuditLogRepository(ABC):
    @abstractmethod
    async def add(self, entry: AuditLog) -> AuditLog:
        raise NotImplementedError

    @abstractmethod
    async def list_for_user(self, user_id: UUID, limit: int = 100) -> List[AuditLog]:
        raise NotImplementedError
